"""Tests for pipeline configuration loading."""

from pathlib import Path

from curation.config import PipelineConfig, load_config
from curation.constants import CONFIG_PATH
from curation.models import SourceKind


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_valid_config(self, tmp_path: Path):
        """Test loading a valid YAML config file."""
        config_file = tmp_path / "pipeline.yaml"
        config_file.write_text("""
pipeline:
  fetch_timeout_seconds: 5
  max_workers: 2
  summary_length: short
sources:
  - name: "Test Feed"
    url: "https://example.com/feed.xml"
  - name: "Test Site"
    url: "https://example.com/"
    kind: website
    check_interval_seconds: 600
""")
        config = load_config(config_file)

        assert config.fetch_timeout_seconds == 5
        assert config.max_workers == 2
        assert config.max_sources_in_flight == 4
        assert config.summary_length == "short"
        assert config.summary_detail == "balanced"
        assert len(config.sources) == 2
        assert config.sources[0].kind == SourceKind.FEED
        assert config.sources[0].check_interval_seconds == 3600
        assert config.sources[1].kind == SourceKind.WEBSITE
        assert config.sources[1].to_source().check_interval_seconds == 600

    def test_load_missing_config(self, tmp_path: Path):
        """Test that a missing file gives the defaults."""
        assert load_config(tmp_path / "nonexistent.yaml") == PipelineConfig()

    def test_load_empty_config(self, tmp_path: Path):
        """Test that an empty file gives the defaults."""
        config_file = tmp_path / "pipeline.yaml"
        config_file.write_text("")
        assert load_config(config_file) == PipelineConfig()

    def test_invalid_options_replaced(self, tmp_path: Path):
        """Test that unknown summary options and oversized caps are corrected."""
        config_file = tmp_path / "pipeline.yaml"
        config_file.write_text("""
pipeline:
  summary_length: enormous
  summary_detail: verbose
  max_website_candidates: 50
""")
        config = load_config(config_file)

        assert config.summary_length == "medium"
        assert config.summary_detail == "balanced"
        assert config.max_website_candidates == 10

    def test_shipped_config_loads(self):
        """Test that the bundled pipeline.yaml is valid."""
        config = load_config(CONFIG_PATH)
        assert config.sources
        assert all(source.url.startswith("http") for source in config.sources)
