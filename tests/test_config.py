"""Tests for configuration loading."""

import os

import yaml


class TestConfig:
    """Tests for YAML configuration with defaults."""

    def test_defaults(self):
        """Test the documented default tolerances and offset."""
        from offsetoverlap.config import load_config

        config = load_config()

        assert config.tolerance.intersection_tolerance == 0.01
        assert config.tolerance.overlap_tolerance == 0.01
        assert config.tolerance.point_match_tolerance == 1e-3
        assert config.offset.distance == 10.0
        assert config.offset.corner_style == "sharp"
        assert config.stitch.allow_ambiguous_join is False

    def test_missing_file_gives_defaults(self, temp_dir):
        """Test that a missing path falls back to defaults."""
        from offsetoverlap.config import load_config

        config = load_config(os.path.join(temp_dir, "absent.yaml"))

        assert config.offset.distance == 10.0

    def test_partial_yaml_is_merged(self, temp_dir):
        """Test that given keys override and the rest keep their defaults."""
        from offsetoverlap.config import load_config

        path = os.path.join(temp_dir, "config.yaml")
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump({
                "offset": {"distance": 2.5, "corner_style": "round"},
                "tolerance": {"overlap_tolerance": 0.05, "unknown_key": 1},
                "not_a_section": {"x": 1},
            }, f)

        config = load_config(path)

        assert config.offset.distance == 2.5
        assert config.offset.corner_style == "round"
        assert config.offset.reverse is False
        assert config.tolerance.overlap_tolerance == 0.05
        assert config.tolerance.intersection_tolerance == 0.01
        assert not hasattr(config.tolerance, "unknown_key")

    def test_save_default_config_round_trip(self, temp_dir):
        """Test that a saved default config loads back unchanged."""
        from offsetoverlap.config import PipelineConfig, load_config, save_default_config

        path = os.path.join(temp_dir, "default.yaml")
        save_default_config(path)

        assert load_config(path) == PipelineConfig()
