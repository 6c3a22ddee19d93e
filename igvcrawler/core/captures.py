"""
Path capture strategies.

Grouping and display labelling both turn an absolute path into zero or more
strings. An empty result means "no match"; callers decide the fallback.
"""

import os
import re
from typing import List, Pattern, Union

from igvcrawler.core.errors import ConfigurationError


def compile_capture_pattern(pattern: Union[str, Pattern], label: str) -> Pattern:
    """
    Compile a regular expression that must have at least one capture group.

    Args:
        pattern: Pattern source (or an already compiled pattern)
        label: Name of the option, used in error messages

    Returns:
        Compiled pattern

    Raises:
        ConfigurationError: If the pattern is empty, invalid or has no capture group
    """
    if isinstance(pattern, re.Pattern):
        compiled = pattern
    else:
        if not pattern:
            raise ConfigurationError(f"{label} is empty, cannot derive anything from file paths")
        try:
            compiled = re.compile(pattern)
        except re.error as e:
            raise ConfigurationError(f"error encountered while parsing {label} '{pattern}': {e}")

    if compiled.groups < 1:
        raise ConfigurationError(f"{label} '{compiled.pattern}' must contain at least one capture group")
    return compiled


# ============================================================================
# Capture Strategies
# ============================================================================


class PathCapture:
    """Given a path, produce 0+ strings."""

    def captures(self, path: str) -> List[str]:
        raise NotImplementedError

    def __call__(self, path: str) -> List[str]:
        return self.captures(path)


class FullPathCapture(PathCapture):
    def captures(self, path: str) -> List[str]:
        return [str(path)]


class BaseNameCapture(PathCapture):
    def captures(self, path: str) -> List[str]:
        return [os.path.basename(str(path))]


class RegexCapture(PathCapture):
    """
    Searches the path with a pattern and returns its non-empty capture values.

    With ``first_only`` only the first capture group counts, which is how the
    grouping pattern is defined.
    """

    def __init__(self, pattern: Union[str, Pattern], first_only: bool = False, label: str = "pattern"):
        self.regex = compile_capture_pattern(pattern, label)
        self.first_only = first_only

    def captures(self, path: str) -> List[str]:
        match = self.regex.search(str(path))
        if match is None:
            return []
        values = match.groups()[:1] if self.first_only else match.groups()
        return [value for value in values if value]

    def __repr__(self) -> str:
        return f"RegexCapture({self.regex.pattern!r}, first_only={self.first_only})"
