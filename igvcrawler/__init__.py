"""
igvcrawler - Publishes IGV-viewable files of a project as grouped symlinks.
"""

__version__ = "0.1.0"

# Package-level exports for convenience
from igvcrawler.core.config import CrawlConfig, ParameterValidator, SiteConfig
from igvcrawler.core.crawler import CrawlResult, IgvCrawler
from igvcrawler.core.errors import ConfigurationError, IgvCrawlerError, UnsafeOutputDirectoryError
from igvcrawler.services.diagnostics import CrawlDiagnostics
from igvcrawler.services.reports import ReportGenerator


__all__ = [
    "CrawlConfig",
    "SiteConfig",
    "ParameterValidator",
    "IgvCrawler",
    "CrawlResult",
    "CrawlDiagnostics",
    "ReportGenerator",
    "IgvCrawlerError",
    "ConfigurationError",
    "UnsafeOutputDirectoryError",
]
