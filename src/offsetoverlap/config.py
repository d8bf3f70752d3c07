"""
Configuration management for OffsetOverlap.

Loads YAML configuration with sensible defaults for all pipeline stages.
"""

import os
from dataclasses import asdict, dataclass, field, fields

import yaml


@dataclass
class ToleranceConfig:
    """All geometric tolerances used across the pipeline, in working units."""
    intersection_tolerance: float = 0.01
    overlap_tolerance: float = 0.01
    point_match_tolerance: float = 1e-3
    planarity_tolerance: float = 1e-5
    closure_tolerance: float = 0.01


@dataclass
class OffsetConfig:
    """Configuration for offsetting the overlapping arcs."""
    distance: float = 10.0
    corner_style: str = "sharp"  # "sharp", "round" or "chamfer"
    mitre_limit: float = 5.0
    reverse: bool = False  # true offsets into the part instead of out of it


@dataclass
class StitchConfig:
    """Configuration for reassembling the output curves."""
    allow_ambiguous_join: bool = False


@dataclass
class ExportConfig:
    """Configuration for SVG export."""
    stroke_width: float = 0.5
    part_color: str = "#888888"
    offset_color: str = "black"
    margin: float = 10.0
    precision: int = 4


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: str = None
    json_output: bool = False


@dataclass
class DebugConfig:
    """Configuration for per-candidate debug artifacts."""
    enabled: bool = False


@dataclass
class PipelineConfig:
    """Complete pipeline configuration."""
    tolerance: ToleranceConfig = field(default_factory=ToleranceConfig)
    offset: OffsetConfig = field(default_factory=OffsetConfig)
    stitch: StitchConfig = field(default_factory=StitchConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)
    debug: DebugConfig = field(default_factory=DebugConfig)


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values.
    """
    config = PipelineConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass; unknown keys are ignored."""
    for section in fields(config):
        values = yaml_data.get(section.name)
        if not isinstance(values, dict):
            continue
        target = getattr(config, section.name)
        for key, value in values.items():
            if hasattr(target, key):
                setattr(target, key, value)

    return config


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    yaml_data = asdict(PipelineConfig())

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)
