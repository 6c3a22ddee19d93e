import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional, Tuple

from igvcrawler.core.captures import compile_capture_pattern
from igvcrawler.core.errors import ConfigurationError, UnsafeOutputDirectoryError


# The destructive clear only ever runs inside a directory with this name.
LINK_DIR_NAME = "links"

DISPLAY_MODES = ("nameonly", "fullpath", "regex")
REPORT_MODES = ("counts", "full")


# ============================================================================
# Configuration Classes
# ============================================================================


@dataclass
class SiteConfig:
    """Site constants: where the web server looks for files and how it is reached."""

    host_base_dir: Path = Path("/public-otp-files")
    www_base_url: str = "https://otpfiles.dkfz.de"
    log_dir: Path = Path("/home/icgcdata/logs")
    page_name: str = "index.html"

    @classmethod
    def from_json(cls, json_path: Path) -> "SiteConfig":
        """
        Load site settings from a JSON file.

        Missing keys and null values fall back to the defaults.

        Args:
            json_path: Path to the JSON file

        Returns:
            SiteConfig instance

        Raises:
            ConfigurationError: If the file cannot be read or parsed
        """
        try:
            with open(json_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read site config {json_path}: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"Site config {json_path} must contain a JSON object")

        defaults = cls()
        kwargs = {}
        for site_field in fields(cls):
            value = data.get(site_field.name)
            if value is None:
                value = getattr(defaults, site_field.name)
            elif site_field.name in ("host_base_dir", "log_dir"):
                value = Path(value)
            kwargs[site_field.name] = value

        unknown = sorted(set(data) - set(kwargs))
        if unknown:
            raise ConfigurationError(f"Unknown site config keys in {json_path}: {', '.join(unknown)}")

        return cls(**kwargs)


@dataclass
class CrawlConfig:
    """Configuration for one crawl of one project."""

    project_name: str
    scan_dirs: List[Path]
    group_pattern: str
    display_mode: str = "nameonly"
    report_mode: str = "counts"
    follow_symlinks: bool = False
    prune_dirs: List[str] = field(default_factory=list)
    prune_files: List[str] = field(default_factory=list)
    link_depth: Optional[int] = None
    dry_run: bool = False
    site: SiteConfig = field(default_factory=SiteConfig)

    @property
    def project_dir_name(self) -> str:
        return self.project_name.lower()

    @property
    def project_dir_path(self) -> Path:
        return Path(self.site.host_base_dir) / self.project_dir_name

    @property
    def link_dir_path(self) -> Path:
        return self.project_dir_path / LINK_DIR_NAME

    @property
    def link_dir_url(self) -> str:
        return f"{self.site.www_base_url.rstrip('/')}/{self.project_dir_name}/{LINK_DIR_NAME}"

    @property
    def page_path(self) -> Path:
        return self.project_dir_path / self.site.page_name

    @property
    def json_report_path(self) -> Path:
        return self.project_dir_path / f"{self.project_dir_name}_report.json"

    @property
    def log_file(self) -> Path:
        return Path(self.site.log_dir) / f"{self.project_name}.log"

    def absolute_scan_dirs(self) -> List[Path]:
        """Scan roots made absolute, without resolving symlinks."""
        return [Path(os.path.abspath(str(scan_dir))) for scan_dir in self.scan_dirs]


def split_scan_dirs(values: List[str]) -> List[Path]:
    """Accept both repeated options and comma-separated lists: ['/a,/b', '/c'] -> [/a, /b, /c]."""
    scan_dirs = []
    for value in values:
        parts = (part.strip() for part in str(value).split(","))
        scan_dirs.extend(Path(part) for part in parts if part)
    return scan_dirs


def parse_display_mode(display_mode: str) -> Tuple[str, Optional[str]]:
    """
    Split a display mode option into its mode and optional regex.

    Accepts "nameonly", "fullpath", "regex:<pattern>" and "regex=<pattern>".

    Returns:
        Tuple of (mode, pattern); pattern is None unless mode is "regex"

    Raises:
        ConfigurationError: If the mode is not recognised
    """
    for prefix in ("regex:", "regex="):
        if display_mode.startswith(prefix):
            return "regex", display_mode[len(prefix):]
    if display_mode in ("nameonly", "fullpath"):
        return display_mode, None
    raise ConfigurationError(
        f'display mode "{display_mode}" not recognised, use either "nameonly", "fullpath" or "regex:SOMEREGEX"'
    )


# ============================================================================
# Parameter Validator
# ============================================================================


class ParameterValidator:
    """Validates crawl parameters. Every check here is fatal and runs before the crawl."""

    @staticmethod
    def validate(config: CrawlConfig) -> None:
        """Validate all parameters in the configuration."""
        ParameterValidator.validate_project_name(config.project_name)
        ParameterValidator.validate_scan_dirs(config.scan_dirs)
        ParameterValidator.validate_group_pattern(config.group_pattern)
        ParameterValidator.validate_display_mode(config.display_mode)
        ParameterValidator.validate_report_mode(config.report_mode)
        ParameterValidator.validate_link_depth(config.link_depth)
        ParameterValidator.validate_link_dir(config.link_dir_path, config.site.host_base_dir)

    @staticmethod
    def validate_project_name(project_name: str) -> None:
        """Validate project name."""
        if not project_name or not project_name.strip():
            raise ConfigurationError("No project name specified, aborting!")
        if os.sep in project_name or project_name in (".", ".."):
            raise ConfigurationError(f"project name must be usable as a directory name, got {project_name!r}")

    @staticmethod
    def validate_scan_dirs(scan_dirs: List[Path]) -> None:
        """Validate the scan-root list."""
        if not scan_dirs:
            raise ConfigurationError("Specified no directories to scan, aborting!")

    @staticmethod
    def validate_group_pattern(group_pattern: str) -> None:
        """Validate the grouping pattern."""
        compile_capture_pattern(group_pattern, "group pattern")

    @staticmethod
    def validate_display_mode(display_mode: str) -> None:
        """Validate display mode and, for regex mode, its pattern."""
        mode, pattern = parse_display_mode(display_mode)
        if mode == "regex":
            compile_capture_pattern(pattern, "display-mode regex")

    @staticmethod
    def validate_report_mode(report_mode: str) -> None:
        """Validate report mode."""
        if report_mode not in REPORT_MODES:
            raise ConfigurationError(f"invalid report mode specified: {report_mode}, use either 'counts' or 'full'")

    @staticmethod
    def validate_link_depth(link_depth: Optional[int]) -> None:
        """Validate link depth."""
        if link_depth is not None and link_depth < 0:
            raise ConfigurationError(f"link_depth must be non-negative, got {link_depth}")

    @staticmethod
    def validate_link_dir(link_dir: Path, host_base_dir: Path) -> None:
        """
        Check that a link directory has the shape <host_base_dir>/<project>/links.

        This is the only shape the destructive clear is allowed to touch.

        Raises:
            UnsafeOutputDirectoryError: If the directory has any other shape
        """
        link_dir = Path(os.path.normpath(os.path.abspath(str(link_dir))))
        base = Path(os.path.normpath(os.path.abspath(str(host_base_dir))))

        if base == Path(base.anchor):
            raise UnsafeOutputDirectoryError(link_dir, "public root must not be the filesystem root")
        if link_dir.name != LINK_DIR_NAME:
            raise UnsafeOutputDirectoryError(link_dir, f"last path component must be '{LINK_DIR_NAME}'")
        project_dir = link_dir.parent
        if project_dir.parent != base:
            raise UnsafeOutputDirectoryError(link_dir, f"must be exactly {base}/<project>/{LINK_DIR_NAME}")
        if project_dir.name in ("", ".", ".."):
            raise UnsafeOutputDirectoryError(link_dir, "project component is empty")
