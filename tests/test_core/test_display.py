"""
Tests for igvcrawler.core.display module.
"""

import pytest

from igvcrawler.core.display import DisplayNameFormatter
from igvcrawler.core.errors import ConfigurationError
from igvcrawler.services.diagnostics import CrawlDiagnostics


@pytest.mark.unit
class TestDisplayNameFormatter:
    """Tests for DisplayNameFormatter class."""

    def test_nameonly(self):
        assert DisplayNameFormatter("nameonly").label_for("/data/S1/tumor/x.bam") == "x.bam"

    def test_fullpath(self):
        assert DisplayNameFormatter("fullpath").label_for("/data/S1/tumor/x.bam") == "/data/S1/tumor/x.bam"

    def test_regex_joins_captures(self):
        formatter = DisplayNameFormatter(r"regex:/(S\d+)/(\w+)/([^/]+)$")
        assert formatter.label_for("/data/S1/tumor/x.bam") == "S1 > tumor > x.bam"

    def test_regex_equals_syntax(self):
        formatter = DisplayNameFormatter(r"regex=/(S\d+)/")
        assert formatter.label_for("/data/S1/x.bam") == "S1"

    def test_unparseable_path_falls_back_to_full_path(self):
        diagnostics = CrawlDiagnostics()
        formatter = DisplayNameFormatter(r"regex:/(S\d+)/", diagnostics=diagnostics)

        assert formatter.label_for("/data/other/x.bam") == "/data/other/x.bam"
        assert diagnostics.stats["unparseable_paths"] == ["/data/other/x.bam"]

    def test_match_without_captured_text_is_unparseable(self):
        diagnostics = CrawlDiagnostics()
        formatter = DisplayNameFormatter(r"regex:/data/(\d*)", diagnostics=diagnostics)

        assert formatter.label_for("/data/x.bam") == "/data/x.bam"
        assert diagnostics.stats["unparseable_paths"] == ["/data/x.bam"]

    def test_accepts_path_objects(self, temp_dir):
        assert DisplayNameFormatter("nameonly").label_for(temp_dir / "x.bed") == "x.bed"

    def test_invalid_mode(self):
        with pytest.raises(ConfigurationError):
            DisplayNameFormatter("short")
