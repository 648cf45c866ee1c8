import copy
import json
import logging
import os
from typing import Tuple, Union

logger = logging.getLogger(__name__)

DEFAULTS = {
    "camera": {
        "index": 0,
        "width": 640,
        "height": 480,
    },
    "pose": {
        "model_complexity": 1,
        "smooth_landmarks": True,
        "min_detection_confidence": 0.5,
        "min_tracking_confidence": 0.5,
    },
    "trail": {
        "count": 15,
        "max_delay_ms": 2500.0,
        "stale_threshold_ms": 1000.0,
        "history_capacity": 200,
        "colors": ["#00ffff", "#bf00ff", "#ff00ff"],
        "opacity_exponent": 1.5,
    },
    "view": {
        "fov_deg": 75.0,
        "camera_z": 10.0,
        "xy_scale": 10.0,
        "z_scale": 2.0,
        "z_clamp": 1.0,
    },
    "bloom": {
        "strength": 1.8,
        "radius": 0.5,
        "threshold": 0.1,
        "levels": 5,
        "line_thickness": 2,
    },
    "logging": {
        "level": "INFO",
    },
}


def load_config(config_path="config.json"):
    """
    Loads configuration from a JSON file.
    If the file doesn't exist, returns default configuration.
    """
    defaults = copy.deepcopy(DEFAULTS)

    if not os.path.exists(config_path):
        # Try looking in parent directories or typical locations
        possible_paths = [
            os.path.join("..", config_path),
            os.path.join("..", "..", config_path),
            os.path.join(os.path.dirname(__file__), "..", "..", "..", config_path),
        ]
        for p in possible_paths:
            if os.path.exists(p):
                config_path = p
                break
        else:
            logger.info("Config file %s not found. Using defaults.", config_path)
            return defaults

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Error loading config %s: %s. Using defaults.", config_path, e)
        return defaults

    if not isinstance(user_config, dict):
        logger.warning("Config %s is not a JSON object. Using defaults.", config_path)
        return defaults

    # Per-section merge; unknown sections are kept as-is
    config = defaults
    for key, value in user_config.items():
        if isinstance(value, dict) and isinstance(config.get(key), dict):
            config[key].update(value)
        else:
            config[key] = value
    logger.info("Loaded config from %s", config_path)
    return config


def parse_color(value: Union[str, int]) -> Tuple[float, float, float]:
    """
    Converts '#rrggbb' / 'rrggbb' / 0xRRGGBB into a BGR float triple in [0, 1]
    (OpenCV channel order).
    """
    if isinstance(value, str):
        s = value.strip().lstrip("#")
        if len(s) != 6:
            raise ValueError(f"invalid color: {value!r}")
        rgb = int(s, 16)
    else:
        rgb = int(value)
    if rgb < 0 or rgb > 0xFFFFFF:
        raise ValueError(f"invalid color: {value!r}")
    r = (rgb >> 16) & 0xFF
    g = (rgb >> 8) & 0xFF
    b = rgb & 0xFF
    return (b / 255.0, g / 255.0, r / 255.0)
