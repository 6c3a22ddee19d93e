"""
Shared pytest fixtures and configuration.
"""

import os
import shutil
import tempfile
from pathlib import Path

import pytest

from igvcrawler.core.config import CrawlConfig, SiteConfig
from igvcrawler.core.records import FileRecord
from igvcrawler.utils.logger import get_logger


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    # Cleanup
    if temp_path.exists():
        shutil.rmtree(temp_path)


@pytest.fixture(autouse=True)
def reset_logger():
    """Drop handlers a test configured, so they never outlive its temp dirs or captured streams."""
    yield
    get_logger().configure(enable_console=False, enable_file=False)


@pytest.fixture
def make_tree():
    """
    Build a directory tree of sized files.

    Usage: make_tree(base, {"a/b/S1.bam": 10, "a/b/empty.bed": 0, "c/": None})
    Keys ending in "/" create directories; values are file sizes in bytes.
    """

    def _make_tree(base_dir: Path, structure: dict) -> Path:
        for relative, size in structure.items():
            path = base_dir / relative
            if relative.endswith("/"):
                path.mkdir(parents=True, exist_ok=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as f:
                f.write(b"0" * (size or 0))
        return base_dir

    return _make_tree


@pytest.fixture
def site_config(temp_dir):
    """SiteConfig pointing the public root and log dir into the temp dir."""
    return SiteConfig(
        host_base_dir=temp_dir / "public",
        www_base_url="https://files.example.org",
        log_dir=temp_dir / "logs",
    )


@pytest.fixture
def make_config(temp_dir, site_config):
    """Factory for CrawlConfig objects scanning <temp_dir>/data by default."""

    def _make_config(**overrides) -> CrawlConfig:
        values = {
            "project_name": "Demo",
            "scan_dirs": [temp_dir / "data"],
            "group_pattern": r"/(S\d+)/",
            "site": site_config,
        }
        values.update(overrides)
        return CrawlConfig(**values)

    return _make_config


@pytest.fixture
def make_record():
    """Factory for FileRecord objects that need no file on disk."""

    def _make_record(path, size_bytes: int = 10, mod_time: float = 1000.0, extension: str = None) -> FileRecord:
        path = Path(path)
        if extension is None:
            name = path.name.lower()
            extension = ".vcf.gz" if name.endswith(".vcf.gz") else os.path.splitext(name)[1]
        return FileRecord(path=path, extension=extension, size_bytes=size_bytes, mod_time=mod_time)

    return _make_record
