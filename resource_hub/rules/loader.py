import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from resource_hub.rules.models import Rules

logger = logging.getLogger(__name__)


def load_rules(path: Path) -> Rules:
    """
    Load and validate the rules file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if the YAML or the schema is invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    with open(path) as f:
        content = f.read()

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    # An empty file means "all defaults"
    if data is None:
        data = {}

    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e


def load_rules_or_default(path: Path) -> Rules:
    """Load rules if the file exists, otherwise fall back to built-in defaults."""
    if not path.exists():
        logger.info("Rules file %s not found, using defaults", path)
        return Rules()
    return load_rules(path)
