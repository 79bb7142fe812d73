#!/usr/bin/env python3
"""Run the content curation pipeline.

Seeds the sources declared in the pipeline config, then runs discovery,
summarization and analysis passes until interrupted.

Usage:
    python run_pipeline.py
    python run_pipeline.py --once
    python run_pipeline.py --config path/to/pipeline.yaml --interval 300
"""

import argparse
import time
from pathlib import Path

from curation.config import PipelineConfig, load_config
from curation.constants import CONFIG_PATH
from curation.database import get_source_by_url, init_db, insert_source
from curation.pipeline import ContentPipeline
from llm.llm_util import GeminiClient
from util.logging_util import setup_logger

logger = setup_logger(__name__)


def seed_sources(config: PipelineConfig) -> int:
    """Insert configured sources that are not stored yet. Returns the number added."""
    added = 0
    for source_config in config.sources:
        if get_source_by_url(source_config.url) is not None:
            continue
        source_id = insert_source(source_config.to_source())
        logger.info(f"Added source {source_id}: {source_config.name} ({source_config.url})")
        added += 1
    return added


def main():
    parser = argparse.ArgumentParser(description="Run the content curation pipeline")
    parser.add_argument("--config", type=Path, default=CONFIG_PATH, help="Pipeline config YAML")
    parser.add_argument("--once", action="store_true", help="Run a single pass and exit")
    parser.add_argument("--interval", type=int, default=60, help="Seconds to sleep between passes")
    parser.add_argument("--model", default=None, help="Override the completion model")
    args = parser.parse_args()

    config = load_config(args.config)
    init_db()
    seed_sources(config)

    pipeline = ContentPipeline(
        client=GeminiClient(model_name=args.model, timeout=config.fetch_timeout_seconds * 3),
        config=config,
    )

    logger.info("Starting content pipeline...")
    while True:
        try:
            stats = pipeline.run_once()
            if stats.failures:
                logger.warning(f"{stats.failures} processing steps failed in this pass")
        except Exception as e:
            logger.error(f"Error in pipeline loop: {e}")
            if args.once:
                raise

        if args.once:
            break
        # Sleep between passes; per-source cadence decides what is actually due
        time.sleep(args.interval)


if __name__ == "__main__":
    main()
