# ============================================================================
# Exceptions
# ============================================================================


class IgvCrawlerError(Exception):
    """Base class for all errors raised by igvcrawler."""


class ConfigurationError(IgvCrawlerError, ValueError):
    """Fatal configuration problem, detected before any traversal starts."""


class UnsafeOutputDirectoryError(ConfigurationError):
    """The output link directory does not have the expected public-root/project/links shape."""

    def __init__(self, directory, reason: str):
        self.directory = directory
        self.reason = reason
        super().__init__(f"SAFETY: refusing to use {directory} as link directory: {reason}")
