import yaml
from pathlib import Path

_CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"

with open(_CONFIG_PATH) as f:
    _cfg = yaml.safe_load(f)

DEFAULT_SUFFIX = _cfg.get("default_suffix") or ""

LOG_LEVEL = _cfg["logging"]["level"]
LOG_FORMAT = _cfg["logging"]["format"]

SPHERE_RADIUS = float(_cfg["preview"]["sphere_radius"])
BONE_RADIUS_RATIO = float(_cfg["preview"]["bone_radius_ratio"])
CYLINDER_SECTIONS = int(_cfg["preview"]["cylinder_sections"])

# Named color → RGBA (0-255)
_COLOR_NAME_TO_RGBA = {
    "blue": [0, 0, 255, 255],
    "green": [0, 180, 0, 255],
    "red": [255, 0, 0, 255],
    "skyblue": [135, 206, 235, 255],
    "cyan": [0, 255, 255, 255],
    "purple": [128, 0, 128, 255],
    "gray": [128, 128, 128, 255],
    "black": [40, 40, 40, 255],
    "pink": [255, 192, 203, 255],
    "orange": [255, 165, 0, 255],
    "yellow": [255, 255, 0, 255],
}

# Hierarchy role → RGBA; unknown colour names fall back to black
ROLE_COLORS = {
    role: _COLOR_NAME_TO_RGBA.get(color_name, [40, 40, 40, 255])
    for role, color_name in _cfg["color_map"].items()
}


def role_color(role):
    return ROLE_COLORS.get(role, ROLE_COLORS.get("other", [40, 40, 40, 255]))
