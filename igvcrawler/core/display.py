from typing import Optional

from igvcrawler.core.captures import BaseNameCapture, FullPathCapture, PathCapture, RegexCapture
from igvcrawler.core.config import parse_display_mode
from igvcrawler.services.diagnostics import CrawlDiagnostics
from igvcrawler.utils.logger import get_logger


# ============================================================================
# Display Name Formatter
# ============================================================================


class DisplayNameFormatter:
    """
    Derives the human-readable label of a listed file.

    - nameonly: the basename
    - fullpath: the absolute path
    - regex:<pattern>: the non-empty captures joined with " > "; paths the
      pattern cannot parse are shown in full and recorded as unparseable.
    """

    SEPARATOR = " > "

    def __init__(self, display_mode: str = "nameonly", diagnostics: Optional[CrawlDiagnostics] = None):
        self.mode, pattern = parse_display_mode(display_mode)
        self.capture = self._build_capture(self.mode, pattern)
        self.diagnostics = diagnostics
        self.logger = get_logger()

    @staticmethod
    def _build_capture(mode: str, pattern: Optional[str]) -> PathCapture:
        if mode == "fullpath":
            return FullPathCapture()
        if mode == "regex":
            return RegexCapture(pattern, label="display-mode regex")
        return BaseNameCapture()

    def label_for(self, path) -> str:
        """
        Get the display label for a file path.

        Args:
            path: Absolute path of the source file

        Returns:
            Display label
        """
        path = str(path)
        values = self.capture.captures(path)
        if values:
            return self.SEPARATOR.join(values)

        self.logger.debug(f"Display pattern does not match {path}, showing full path")
        if self.diagnostics is not None:
            self.diagnostics.record_unparseable(path)
        return path
