"""
Pipeline configuration loaded from YAML.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import yaml

from curation.constants import (
    CONFIG_PATH,
    DEFAULT_CHECK_INTERVAL_SECONDS,
    FETCH_TIMEOUT_SECONDS,
    LENGTH_OPTIONS,
    DETAIL_OPTIONS,
    MAX_SOURCES_IN_FLIGHT,
    MAX_WEBSITE_CANDIDATES,
    MAX_WORKERS,
)
from curation.models import Source, SourceKind
from util.logging_util import setup_logger

logger = setup_logger(__name__)


@dataclass
class SourceConfig:
    """A source declared in the config file, seeded into storage on startup."""
    name: str
    url: str
    kind: SourceKind = SourceKind.FEED
    check_interval_seconds: int = DEFAULT_CHECK_INTERVAL_SECONDS

    def to_source(self) -> Source:
        return Source(
            url=self.url,
            kind=self.kind,
            name=self.name,
            check_interval_seconds=self.check_interval_seconds,
        )


@dataclass
class PipelineConfig:
    fetch_timeout_seconds: float = FETCH_TIMEOUT_SECONDS
    max_website_candidates: int = MAX_WEBSITE_CANDIDATES
    max_sources_in_flight: int = MAX_SOURCES_IN_FLIGHT
    max_workers: int = MAX_WORKERS
    summary_length: str = "medium"
    summary_detail: str = "balanced"
    sources: List[SourceConfig] = field(default_factory=list)


def _parse_source(source_data: dict) -> SourceConfig:
    return SourceConfig(
        name=source_data.get("name", source_data["url"]),
        url=source_data["url"],
        kind=SourceKind(source_data.get("kind", "feed")),
        check_interval_seconds=int(source_data.get("check_interval_seconds", DEFAULT_CHECK_INTERVAL_SECONDS)),
    )


def load_config(config_path: Path = CONFIG_PATH) -> PipelineConfig:
    """Load the pipeline configuration, using defaults when the file is missing."""
    if not config_path.exists():
        logger.warning(f"Pipeline config not found at {config_path}, using defaults")
        return PipelineConfig()

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    pipeline = data.get("pipeline", {}) or {}
    config = PipelineConfig(
        fetch_timeout_seconds=float(pipeline.get("fetch_timeout_seconds", FETCH_TIMEOUT_SECONDS)),
        max_website_candidates=int(pipeline.get("max_website_candidates", MAX_WEBSITE_CANDIDATES)),
        max_sources_in_flight=int(pipeline.get("max_sources_in_flight", MAX_SOURCES_IN_FLIGHT)),
        max_workers=int(pipeline.get("max_workers", MAX_WORKERS)),
        summary_length=pipeline.get("summary_length", "medium"),
        summary_detail=pipeline.get("summary_detail", "balanced"),
        sources=[_parse_source(s) for s in data.get("sources", []) or []],
    )

    if config.summary_length not in LENGTH_OPTIONS:
        logger.warning(f"Unknown summary_length '{config.summary_length}', using medium")
        config.summary_length = "medium"
    if config.summary_detail not in DETAIL_OPTIONS:
        logger.warning(f"Unknown summary_detail '{config.summary_detail}', using balanced")
        config.summary_detail = "balanced"
    config.max_website_candidates = min(config.max_website_candidates, MAX_WEBSITE_CANDIDATES)

    return config
