"""
Database name generation.

Names are drawn from a URL-safe alphabet so they can be appended to an
origin without escaping. A prefix is concatenated directly, with no
separator, on every provisioning path.
"""

import secrets
import string
from dataclasses import dataclass
from typing import Union

DEFAULT_NAME_LENGTH = 40
URL_SAFE_ALPHABET = string.ascii_letters + string.digits + '_-'


@dataclass(frozen=True)
class Random:
    """Fully generated name."""


@dataclass(frozen=True)
class RandomWithPrefix:
    """Generated name appended to a caller-supplied prefix."""

    prefix: str


@dataclass(frozen=True)
class Custom:
    """Exact caller-supplied name, assumed URL-safe."""

    name: str


DatabaseNameOption = Union[Random, RandomWithPrefix, Custom]


def random_name(size: int = DEFAULT_NAME_LENGTH) -> str:
    """Return size characters drawn from URL_SAFE_ALPHABET."""
    return ''.join(secrets.choice(URL_SAFE_ALPHABET) for _ in range(size))


def generate_name(option: DatabaseNameOption) -> str:
    """Resolve a name option into a database name.

    Args:
        option: Random(), RandomWithPrefix(prefix) or Custom(name)

    Returns:
        Database name; Custom names are returned verbatim
    """
    if isinstance(option, Custom):
        return option.name
    if isinstance(option, RandomWithPrefix):
        return option.prefix + random_name()
    return random_name()
