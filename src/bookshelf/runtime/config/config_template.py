"""Configuration template substitution utilities.

``config.yaml`` may pull values from the environment with ``${NAME}``,
``${NAME:-default}`` or ``${NAME:?message}``. Placeholders are expanded in the
raw text before parsing so a substituted value is typed by YAML (``port:
${BOOKSHELF_DB_PORT:-3306}`` yields an int, an empty default yields null).
YAML comments are left alone: a ``#`` at the start of a line or after
whitespace ends the part of the line that is expanded.
"""

import os
import re
from pathlib import Path

import yaml
from loguru import logger
from pydantic_core import ValidationError

from src.bookshelf.runtime.config.config_data import ConfigData

PLACEHOLDER = re.compile(
    r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?:(?P<op>:-|:\?)(?P<arg>[^}]*))?\}"
)
COMMENT_START = re.compile(r"(?:^|(?<=\s))#")


def _resolve(match: re.Match) -> str:
    name, op, arg = match.group("name", "op", "arg")
    value = os.getenv(name)

    if op == ":-":
        return arg if value is None else value
    if value is None:
        if op == ":?":
            raise ValueError(f"Required environment variable {name}: {arg}")
        raise ValueError(f"Required environment variable {name} not set")
    return value


def _comment_start(line: str) -> int:
    """Index where the line's comment begins, or its length when it has none."""
    placeholders = [m.span() for m in PLACEHOLDER.finditer(line)]
    for match in COMMENT_START.finditer(line):
        # A '#' inside a placeholder default is part of the value
        if not any(start < match.start() < end for start, end in placeholders):
            return match.start()
    return len(line)


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variable placeholders in YAML text.

    Supports formats:
    - ${VAR_NAME} - required variable (raises error if missing)
    - ${VAR_NAME:-default} - optional with default value
    - ${VAR_NAME:?error_message} - required with custom error message

    Placeholders inside comments are not expanded.
    """
    lines = []
    for line in text.splitlines(keepends=True):
        cut = _comment_start(line)
        lines.append(PLACEHOLDER.sub(_resolve, line[:cut]) + line[cut:])
    return "".join(lines)


def load_templated_yaml(file_path: Path) -> ConfigData:
    """
    Load a YAML configuration file with environment variable substitution.

    Args:
        file_path: Path to the YAML file

    Returns:
        The validated ``config`` section

    Raises:
        ValueError: If required environment variables are missing or the
            content does not validate
        FileNotFoundError: If the YAML file doesn't exist
    """
    with open(file_path) as f:
        content = f.read()

    logger.debug("Loading configuration from {}", file_path)

    try:
        loaded = yaml.safe_load(substitute_env_vars(content))
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e

    if not loaded:
        raise ValueError("Failed to parse YAML: the file is empty")
    if not isinstance(loaded, dict):
        raise ValueError("Failed to parse YAML: expected a mapping at the top level")

    try:
        return ConfigData(**(loaded.get("config") or {}))
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
