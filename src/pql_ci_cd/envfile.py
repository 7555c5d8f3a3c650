"""
Dotenv parsing for .env.cloud.

The grammar is python-dotenv's: blank lines and ``#`` comments are
skipped, ``export`` prefixes are accepted, and a repeated key keeps
its last value. On top of that one layer of surrounding quotes is
peeled off each value.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from dotenv import dotenv_values

from .models import EnvVar

logger = logging.getLogger("pql_ci_cd.envfile")

_SURROUNDING_QUOTES = re.compile(r"^[\"']|[\"']$")


def strip_quotes(value: str) -> str:
    """Drop one leading and one trailing quote character, if present."""
    return _SURROUNDING_QUOTES.sub("", value)


def parse_env_file(path: Path) -> list[EnvVar]:
    """Parse a dotenv file into an ordered list of EnvVar.

    The caller is responsible for checking that ``path`` exists.
    Undecodable bytes are replaced with U+FFFD rather than failing.
    A line holding only a key with no ``=`` is not an assignment and
    is dropped.

    Args:
        path: Dotenv file to read.

    Returns:
        One EnvVar per distinct key, in first-appearance order.
    """
    with open(path, encoding="utf-8", errors="replace") as stream:
        values = dotenv_values(stream=stream, interpolate=False)
    env_vars = [
        EnvVar(key=key, value=strip_quotes(value))
        for key, value in values.items()
        if value is not None
    ]
    logger.debug("Parsed %d variables from %s", len(env_vars), path)
    return env_vars


def env_lookup(env_vars: list[EnvVar], key: str) -> str:
    """Value for ``key`` or an empty string."""
    for var in env_vars:
        if var.key == key:
            return var.value
    return ""
