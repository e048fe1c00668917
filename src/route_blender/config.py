"""Configuration loading for route-blender."""

import json
from pathlib import Path

from route_blender.models import SegmentationParams

CONFIG_DIR = Path.home() / ".config" / "route-blender"
CONFIG_PATH = CONFIG_DIR / "route-blender.json"
LOCAL_CONFIG_PATH = Path("route-blender.json")

# Default values for analysis options
DEFAULTS = {
    "resample_interval": 50.0,  # meters
    "overlap_threshold": 100.0,  # meters
    "min_segment_length": 500.0,  # meters
    "clamp_secondary": True,
    "profile_max_points": 500,
    "grade_window": 10,
}


def load_config() -> dict:
    """Load configuration from config files.

    Merges config from global and local files:
    1. ~/.config/route-blender/route-blender.json (global, loaded first)
    2. ./route-blender.json (local, overrides global)

    Returns:
        Dict with merged config values, empty dict if no files exist.
    """
    config = {}
    for config_path in [CONFIG_PATH, LOCAL_CONFIG_PATH]:
        if config_path.exists():
            try:
                with config_path.open() as f:
                    config.update(json.load(f))
            except (json.JSONDecodeError, OSError):
                continue
    return config


def get_setting(config: dict, key: str):
    """Config value for key, falling back to DEFAULTS."""
    return config.get(key, DEFAULTS[key])


def segmentation_params_from_config(config: dict | None = None) -> SegmentationParams:
    """Build SegmentationParams from config values, using DEFAULTS for missing keys."""
    if config is None:
        config = {}
    return SegmentationParams(
        resample_interval_m=float(get_setting(config, "resample_interval")),
        overlap_threshold_m=float(get_setting(config, "overlap_threshold")),
        min_segment_length_m=float(get_setting(config, "min_segment_length")),
        clamp_secondary=bool(get_setting(config, "clamp_secondary")),
    )
