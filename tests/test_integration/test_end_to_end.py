"""
Integration tests for end-to-end crawls.
"""

import os
from pathlib import Path

import pytest

from igvcrawler.core.crawler import IgvCrawler
from igvcrawler.core.errors import ConfigurationError, UnsafeOutputDirectoryError
from igvcrawler.core.grouping import FALLBACK_GROUP_ID


def _link_tree(link_dir):
    """Map of link path (relative to link_dir) to symlink target."""
    links = {}
    for dirpath, dirnames, filenames in os.walk(link_dir):
        for name in dirnames + filenames:
            full_path = os.path.join(dirpath, name)
            if os.path.islink(full_path):
                links[os.path.relpath(full_path, link_dir)] = os.readlink(full_path)
    return links


def _listing(result):
    return [(group.group_id, [entry.display_label for entry in group.files]) for group in result.listing]


@pytest.fixture
def bam_tree(temp_dir, make_tree):
    make_tree(temp_dir, {"data/s1/a.bam": 10, "data/s1/a.bai": 2, "data/s1/b.bam": 10})
    return temp_dir / "data"


@pytest.mark.integration
class TestCrawlScenarios:
    """End-to-end scenarios on real directory trees."""

    def test_bam_with_and_without_index(self, bam_tree, make_config):
        config = make_config(scan_dirs=[bam_tree], group_pattern=r"/(s\d+)/")

        result = IgvCrawler(config).crawl()

        assert _listing(result) == [("s1", ["a.bam"])]
        assert result.stats["files_without_index"] == [str(bam_tree / "s1" / "b.bam")]
        links = _link_tree(config.link_dir_path)
        assert sorted(os.path.basename(link) for link in links) == ["a.bai", "a.bam", "b.bam"]
        assert str(bam_tree / "s1" / "a.bai") in links.values()

    def test_pruned_file_is_excluded_entirely(self, bam_tree, make_config):
        config = make_config(scan_dirs=[bam_tree], group_pattern=r"/(s\d+)/", prune_files=["b.*"])

        result = IgvCrawler(config).crawl()

        assert _listing(result) == [("s1", ["a.bam"])]
        assert result.stats["files_without_index"] == []
        assert result.stats["files_ignored"] == 1
        assert all(not link.endswith("b.bam") for link in _link_tree(config.link_dir_path))

    def test_link_name_collision(self, temp_dir, make_tree, make_config):
        make_tree(temp_dir, {"data/x/a/f.bed": 1, "data/x/b/f.bed": 1})
        config = make_config(group_pattern=r"/(x)/", link_depth=0)

        result = IgvCrawler(config).crawl()

        assert len(result.stats["link_collisions"]) == 1
        assert _link_tree(config.link_dir_path) == {os.path.join("x", "f.bed"): str(temp_dir / "data/x/b/f.bed")}

    def test_dry_run_reports_link_name_collision(self, temp_dir, make_tree, make_config):
        make_tree(temp_dir, {"data/x/a/f.bed": 1, "data/x/b/f.bed": 1})
        config = make_config(group_pattern=r"/(x)/", link_depth=0, dry_run=True)

        result = IgvCrawler(config).crawl()

        assert result.stats["link_collisions"] == [
            {
                "link": str(config.link_dir_path / "x" / "f.bed"),
                "old_target": str(temp_dir / "data/x/a/f.bed"),
                "new_target": str(temp_dir / "data/x/b/f.bed"),
            }
        ]
        assert [str(record.path) for record, _ in result.planned_links] == [str(temp_dir / "data/x/b/f.bed")]
        assert not config.project_dir_path.exists()

    def test_default_link_names_keep_same_named_files_apart(self, temp_dir, make_tree, make_config):
        make_tree(temp_dir, {"data/x/a/f.bed": 1, "data/x/b/f.bed": 1})
        config = make_config(group_pattern=r"/(x)/")

        result = IgvCrawler(config).crawl()

        assert result.stats["link_collisions"] == []
        assert len(_link_tree(config.link_dir_path)) == 2

    def test_every_file_in_exactly_one_group_fallback_last(self, temp_dir, make_tree, make_config):
        make_tree(
            temp_dir,
            {"data/S2/b.bed": 1, "data/S1/a.bed": 1, "data/misc/c.bed": 1, "data/S1/readme.txt": 1, "data/S3/e.wig": 0},
        )
        config = make_config(group_pattern=r"/(S\d+)/")

        result = IgvCrawler(config).crawl()

        assert _listing(result) == [("S1", ["a.bed"]), ("S2", ["b.bed"]), (FALLBACK_GROUP_ID, ["c.bed"])]
        assert result.stats["ungroupable_paths"] == [str(temp_dir / "data/misc/c.bed")]
        assert result.stats["files_kept"] == 3
        assert len(result.planned_links) == 3

    def test_group_without_displayable_files_is_linked_but_not_listed(self, temp_dir, make_tree, make_config):
        make_tree(temp_dir, {"data/S1/a.bed": 1, "data/S2/x.bai": 1, "data/S3/y.bam": 1})
        config = make_config()

        result = IgvCrawler(config).crawl()

        assert _listing(result) == [("S1", ["a.bed"])]
        assert result.stats["orphaned_indices"] == [str(temp_dir / "data/S2/x.bai")]
        assert result.stats["files_without_index"] == [str(temp_dir / "data/S3/y.bam")]
        links = _link_tree(config.link_dir_path)
        assert str(temp_dir / "data/S2/x.bai") in links.values()
        assert str(temp_dir / "data/S3/y.bam") in links.values()
        assert {link.split(os.sep)[0] for link in links} == {"S1", "S2", "S3"}
        assert 'id="S2"' not in config.page_path.read_text(encoding="utf-8")

    def test_display_regex_and_unparseable(self, temp_dir, make_tree, make_config):
        make_tree(temp_dir, {"data/S1/tumor/x.bed": 1, "data/S1/y.bed": 1})
        config = make_config(display_mode=r"regex:/(S\d+)/(tumor|control)/")

        result = IgvCrawler(config).crawl()

        assert _listing(result) == [("S1", ["S1 > tumor", str(temp_dir / "data/S1/y.bed")])]
        assert result.stats["unparseable_paths"] == [str(temp_dir / "data/S1/y.bed")]

    def test_page_and_listing_written(self, temp_dir, bam_tree, make_config):
        config = make_config(scan_dirs=[bam_tree], group_pattern=r"/(s\d+)/")

        result = IgvCrawler(config).crawl()

        assert result.published is True
        page = config.page_path.read_text(encoding="utf-8")
        assert "IGV files for Demo" in page
        assert f"{config.link_dir_url}/s1/" in page
        assert result.stats["groups_displayed"] == 1
        assert result.stats["files_displayed"] == 1
        assert result.stats["files_linked"] == 3

    def test_stale_links_are_replaced(self, temp_dir, bam_tree, make_config):
        config = make_config(scan_dirs=[bam_tree], group_pattern=r"/(s\d+)/")
        stale_dir = config.link_dir_path / "old_group"
        stale_dir.mkdir(parents=True)
        os.symlink(temp_dir / "gone.bam", stale_dir / "gone.bam")

        IgvCrawler(config).crawl()

        assert not stale_dir.exists()
        assert all("gone.bam" not in link for link in _link_tree(config.link_dir_path))

    def test_render_failure_leaves_old_links_in_place(self, temp_dir, bam_tree, make_config, mocker):
        config = make_config(scan_dirs=[bam_tree], group_pattern=r"/(s\d+)/")
        stale_dir = config.link_dir_path / "old_group"
        stale_dir.mkdir(parents=True)
        os.symlink(temp_dir / "gone.bam", stale_dir / "gone.bam")
        mocker.patch("igvcrawler.core.crawler.HtmlPageWriter.render", side_effect=RuntimeError("render failed"))

        with pytest.raises(RuntimeError, match="render failed"):
            IgvCrawler(config).crawl()

        assert (stale_dir / "gone.bam").is_symlink()
        assert not config.page_path.exists()

    def test_idempotent(self, bam_tree, make_config):
        config = make_config(scan_dirs=[bam_tree], group_pattern=r"/(s\d+)/")

        first = IgvCrawler(config).crawl()
        first_links = _link_tree(config.link_dir_path)
        second = IgvCrawler(config).crawl()

        assert _link_tree(config.link_dir_path) == first_links
        assert second.listing == first.listing
        assert second.stats["link_collisions"] == []

    def test_dry_run_touches_nothing(self, bam_tree, make_config):
        config = make_config(scan_dirs=[bam_tree], group_pattern=r"/(s\d+)/", dry_run=True)

        result = IgvCrawler(config).crawl()

        assert result.published is False
        assert _listing(result) == [("s1", ["a.bam"])]
        assert not config.project_dir_path.exists()
        assert result.stats["files_linked"] == 0

    def test_diagnostics_closed_after_crawl(self, bam_tree, make_config):
        result = IgvCrawler(make_config(scan_dirs=[bam_tree], group_pattern=r"/(s\d+)/")).crawl()

        assert result.diagnostics.closed is True
        assert result.stats["crawl_seconds"] >= 0


@pytest.mark.integration
class TestFatalErrors:
    """Configuration problems abort before the output tree is touched."""

    def test_group_pattern_without_capture_aborts(self, bam_tree, make_config):
        config = make_config(scan_dirs=[bam_tree], group_pattern=r"/s\d+/")
        config.link_dir_path.mkdir(parents=True)
        (config.link_dir_path / "keep").symlink_to(bam_tree)

        with pytest.raises(ConfigurationError):
            IgvCrawler(config).crawl()

        assert (config.link_dir_path / "keep").is_symlink()

    def test_unsafe_output_directory_aborts(self, bam_tree, make_config, site_config):
        site_config.host_base_dir = Path("/")
        config = make_config(scan_dirs=[bam_tree])

        with pytest.raises(UnsafeOutputDirectoryError):
            IgvCrawler(config).crawl()

    def test_empty_scan_dirs_abort(self, make_config):
        with pytest.raises(ConfigurationError):
            IgvCrawler(make_config(scan_dirs=[])).crawl()
