"""
Tests for igvcrawler.core.link_names module.
"""

import os

import pytest

from igvcrawler.core.link_names import LinkNameResolver
from igvcrawler.core.records import LinkName
from igvcrawler.services.diagnostics import CrawlDiagnostics


@pytest.mark.unit
class TestLinkNameFor:
    """Tests for link name computation."""

    def test_flattens_all_parents_by_default(self):
        link_name = LinkNameResolver("/pub/p/links").link_name_for("/data/S1/tumor/x.bam", "S1")

        assert link_name == LinkName(group_dir="S1", relative_path="data-S1-tumor/x.bam")
        assert link_name.public_path == "S1/data-S1-tumor/x.bam"

    def test_link_depth_keeps_last_parents(self):
        resolver = LinkNameResolver("/pub/p/links", link_depth=2)
        assert resolver.link_name_for("/data/S1/tumor/x.bam", "S1").relative_path == "S1-tumor/x.bam"

    def test_link_depth_zero_keeps_basename(self):
        resolver = LinkNameResolver("/pub/p/links", link_depth=0)
        assert resolver.link_name_for("/data/S1/tumor/x.bam", "S1").relative_path == "x.bam"

    def test_file_in_root_directory(self):
        assert LinkNameResolver("/pub/p/links").link_name_for("/x.bam", "g").relative_path == "x.bam"

    def test_same_basename_in_different_directories_does_not_clash(self):
        resolver = LinkNameResolver("/pub/p/links")

        first = resolver.link_name_for("/x/a/f.bed", "g")
        second = resolver.link_name_for("/x/b/f.bed", "g")

        assert first != second

    def test_is_deterministic(self):
        resolver = LinkNameResolver("/pub/p/links", link_depth=1)
        assert resolver.link_name_for("/x/a/f.bed", "g") == resolver.link_name_for("/x/a/f.bed", "g")

    @pytest.mark.parametrize(
        "group_id,expected",
        [
            ("S1", "S1"),
            ("a/b", "a%2Fb"),
            ("a-b", "a-b"),
            ("50%", "50%25"),
            ("..", "%2E%2E"),
            (".", "%2E"),
            ("~ungrouped", "~ungrouped"),
        ],
    )
    def test_group_dir_for(self, group_id, expected):
        assert LinkNameResolver.group_dir_for(group_id) == expected

    def test_group_dirs_of_distinct_groups_differ(self):
        group_ids = ["a/b", "a-b", "a%2Fb", "a_b"]
        assert len({LinkNameResolver.group_dir_for(group_id) for group_id in group_ids}) == len(group_ids)

    def test_public_path(self):
        resolver = LinkNameResolver("/pub/p/links")
        link_name = LinkName(group_dir="S1", relative_path="d/x.bam")

        assert str(resolver.public_path(link_name)) == "/pub/p/links/S1/d/x.bam"


@pytest.mark.unit
class TestResolveCollisions:
    """Tests for settling link name clashes before publishing."""

    def test_clash_is_recorded_and_last_file_wins(self, make_record):
        diagnostics = CrawlDiagnostics()
        resolver = LinkNameResolver("/pub/p/links", link_depth=0, diagnostics=diagnostics)
        first, second, other = make_record("/x/a/f.bed"), make_record("/x/b/f.bed"), make_record("/x/a/g.bed")
        planned = [(record, resolver.link_name_for(record.path, "g")) for record in (first, other, second)]

        resolved = resolver.resolve_collisions(planned)

        assert [record for record, _ in resolved] == [other, second]
        assert diagnostics.stats["link_collisions"] == [
            {"link": "/pub/p/links/g/f.bed", "old_target": "/x/a/f.bed", "new_target": "/x/b/f.bed"}
        ]

    def test_distinct_names_pass_through(self, make_record):
        diagnostics = CrawlDiagnostics()
        resolver = LinkNameResolver("/pub/p/links", diagnostics=diagnostics)
        planned = [(make_record(path), resolver.link_name_for(path, "g")) for path in ("/x/a/f.bed", "/x/b/f.bed")]

        assert resolver.resolve_collisions(planned) == planned
        assert diagnostics.stats["link_collisions"] == []


@pytest.mark.unit
class TestCreateLink:
    """Tests for symlink creation."""

    def test_creates_symlink_and_parents(self, temp_dir, make_tree, make_record):
        make_tree(temp_dir, {"data/S1/x.bam": 3})
        source = temp_dir / "data" / "S1" / "x.bam"
        diagnostics = CrawlDiagnostics()
        resolver = LinkNameResolver(temp_dir / "links", diagnostics=diagnostics)
        link_name = resolver.link_name_for(source, "S1")

        link_path = resolver.create_link(make_record(source), link_name)

        assert link_path.is_symlink()
        assert os.readlink(link_path) == str(source)
        assert diagnostics.stats["files_linked"] == 1

    def test_collision_last_write_wins(self, temp_dir, make_record):
        diagnostics = CrawlDiagnostics()
        resolver = LinkNameResolver(temp_dir / "links", link_depth=0, diagnostics=diagnostics)
        first, second = make_record("/x/a/f.bed"), make_record("/x/b/f.bed")

        resolver.create_link(first, resolver.link_name_for(first.path, "g"))
        link_path = resolver.create_link(second, resolver.link_name_for(second.path, "g"))

        assert os.readlink(link_path) == "/x/b/f.bed"
        assert diagnostics.stats["link_collisions"] == [
            {"link": str(link_path), "old_target": "/x/a/f.bed", "new_target": "/x/b/f.bed"}
        ]

    def test_relinking_same_target_is_not_a_collision(self, temp_dir, make_record):
        diagnostics = CrawlDiagnostics()
        resolver = LinkNameResolver(temp_dir / "links", diagnostics=diagnostics)
        record = make_record("/x/a/f.bed")
        link_name = resolver.link_name_for(record.path, "g")

        resolver.create_link(record, link_name)
        resolver.create_link(record, link_name)

        assert diagnostics.stats["link_collisions"] == []

    def test_existing_regular_file_is_a_link_error(self, temp_dir, make_tree, make_record):
        diagnostics = CrawlDiagnostics()
        resolver = LinkNameResolver(temp_dir / "links", link_depth=0, diagnostics=diagnostics)
        make_tree(temp_dir, {"links/g/f.bed": 1})

        result = resolver.create_link(make_record("/x/a/f.bed"), resolver.link_name_for("/x/a/f.bed", "g"))

        assert result is None
        assert len(diagnostics.stats["link_errors"]) == 1
        assert diagnostics.stats["files_linked"] == 0
        assert not (temp_dir / "links" / "g" / "f.bed").is_symlink()

    def test_os_error_is_recorded_not_raised(self, temp_dir, make_record, mocker):
        mocker.patch("igvcrawler.core.link_names.os.symlink", side_effect=PermissionError(13, "Permission denied"))
        diagnostics = CrawlDiagnostics()
        resolver = LinkNameResolver(temp_dir / "links", diagnostics=diagnostics)

        assert resolver.create_link(make_record("/x/a/f.bed"), resolver.link_name_for("/x/a/f.bed", "g")) is None
        assert diagnostics.stats["link_errors"][0]["error"].startswith("[Errno 13]")
