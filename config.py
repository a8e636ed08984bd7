import json
import logging
import os
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    "target": 200,
    "clamp_reductions": True,
    "input_format": "text",
    "output_format": "text",
}

_FORMATS = ("text", "jsonl")

_VALIDATORS: Dict[str, Callable[[Any], bool]] = {
    "target": lambda v: isinstance(v, int) and not isinstance(v, bool) and v > 0,
    "clamp_reductions": lambda v: isinstance(v, bool),
    "input_format": lambda v: v in _FORMATS,
    "output_format": lambda v: v in _FORMATS,
}


def _resolve_default_path() -> str:
    """Returns the default path for the config file (project root)."""
    project_root = os.path.dirname(os.path.abspath(__file__))
    return os.path.join(project_root, "config.json")


def load_config(config_path: str | None = None) -> Dict[str, Dict[str, Any]]:
    """
    Loads configuration from a JSON file. If the file does not exist or is invalid,
    returns the in-code defaults. Values of the wrong type fall back to their default.

    Resolution order:
    1) Explicit config_path argument
    2) Environment variable BOOK_ANALYZER_CONFIG_PATH
    3) Default path at project root: config.json
    """
    path = (
        config_path
        or os.environ.get("BOOK_ANALYZER_CONFIG_PATH")
        or _resolve_default_path()
    )
    analyzer = dict(DEFAULTS)

    try:
        if os.path.exists(path):
            with open(path, "r") as f:
                cfg = json.load(f)
            # Keep only recognized keys and drop keys with null values
            section_data = cfg.get("analyzer", {}) if isinstance(cfg, dict) else {}
            if isinstance(section_data, dict):
                for key, value in section_data.items():
                    if key not in DEFAULTS or value is None:
                        continue
                    if not _VALIDATORS[key](value):
                        logger.warning("Invalid value %r for %s in %s. Using default %r.", value, key, path, DEFAULTS[key])
                        continue
                    analyzer[key] = value
            logger.info("Loaded configuration from %s", os.path.abspath(path))
        else:
            logger.warning("Config file not found at %s. Using in-code defaults.", os.path.abspath(path))
    except Exception as e:
        logger.error("Failed to load config from %s: %s. Using in-code defaults.", path, e, exc_info=True)
        analyzer = dict(DEFAULTS)

    return {"analyzer": analyzer}
