"""
gov_codes Configuration Loader.

Loads configuration from .gov_codes/config.yaml for reference data lookup,
grammar variants and validation strictness.
"""

import logging
import yaml
from pathlib import Path
from typing import Dict, Any

logger = logging.getLogger(__name__)


def load_gov_codes_config(root: Path) -> Dict[str, Any]:
    """
    Load .gov_codes/config.yaml configuration file.

    The config file controls:
    - Extra reference data directories
    - Officer qualification level and enlisted skill level classes
    - Whether trailing characters after a complete code are accepted

    Args:
        root: Project root path

    Returns:
        Parsed configuration dict, or empty dict if file doesn't exist

    Example config:
        lookup:
          paths:
            - data
        grammar:
          officer_qualification_levels: "0-4X-Z"
          enlisted_skill_levels: "A-Z"
        validation:
          allow_trailing_input: false
    """
    config_path = root / ".gov_codes" / "config.yaml"

    if not config_path.exists():
        return {}

    try:
        with open(config_path) as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return {}

    if not isinstance(config, dict):
        return {}
    return config


def _section(root: Path, name: str) -> Dict[str, Any]:
    section = load_gov_codes_config(root).get(name)
    return dict(section) if isinstance(section, dict) else {}


def get_lookup_config(root: Path) -> Dict[str, Any]:
    """
    Get reference data lookup configuration.

    Relative paths are resolved against the project root.

    Args:
        root: Project root path

    Returns:
        Lookup configuration dict with defaults applied
    """
    lookup_config = _section(root, "lookup")

    paths = lookup_config.get("paths") or []
    if isinstance(paths, str):
        paths = [paths]
    lookup_config["paths"] = [
        path if path.is_absolute() else root / path
        for path in (Path(str(p)) for p in paths)
    ]

    return lookup_config


def get_grammar_config(root: Path) -> Dict[str, Any]:
    """
    Get grammar configuration.

    Args:
        root: Project root path

    Returns:
        Grammar configuration with defaults
    """
    grammar_config = _section(root, "grammar")

    defaults = {
        "officer_qualification_levels": "0-4X-Z",
        "enlisted_skill_levels": "A-Z",
    }

    for key, default_value in defaults.items():
        if key not in grammar_config:
            grammar_config[key] = default_value

    return grammar_config


def get_validation_config(root: Path) -> Dict[str, Any]:
    """
    Get validation configuration.

    Args:
        root: Project root path

    Returns:
        Validation configuration with defaults
    """
    validation_config = _section(root, "validation")

    defaults = {
        "allow_trailing_input": False,
    }

    for key, default_value in defaults.items():
        if key not in validation_config:
            validation_config[key] = default_value

    return validation_config
