import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

from igvcrawler.core.records import FileRecord, LinkName
from igvcrawler.services.diagnostics import CrawlDiagnostics
from igvcrawler.utils.logger import get_logger


# ============================================================================
# Link Name Resolver
# ============================================================================


class LinkNameResolver:
    """
    Derives where a file is published inside the output tree, and publishes it.

    Layout: <link_dir>/<group>/<flattened parent dirs>/<basename>

    The parent directories of the source are squashed into a single segment
    joined with "-", so the output never mirrors a deep source tree and
    same-named files from different directories do not clash. With
    ``link_depth`` only the last N parent names are kept; 0 keeps none, and
    identically named files of a group then collide.
    """

    SEGMENT_SEPARATOR = "-"

    def __init__(
        self, link_dir: Path, link_depth: Optional[int] = None, diagnostics: Optional[CrawlDiagnostics] = None
    ):
        """
        Initialize link name resolver.

        Args:
            link_dir: Root of the output symlink tree
            link_depth: Number of trailing parent directory names to keep (None keeps all)
            diagnostics: Accumulator for collisions and link errors
        """
        self.link_dir = Path(link_dir)
        self.link_depth = link_depth
        self.diagnostics = diagnostics
        self.logger = get_logger()

    @staticmethod
    def group_dir_for(group_id: str) -> str:
        """
        Turn a group id into a single safe directory name.

        Path separators and "%" are percent-encoded, so distinct group ids
        never share a directory.
        """
        name = group_id.replace("%", "%25")
        for separator in {"/", os.sep}:
            name = name.replace(separator, quote(separator, safe=""))
        if name in ("", ".", ".."):
            name = name.replace(".", "%2E") or "%00"
        return name

    def link_name_for(self, path, group_id: str) -> LinkName:
        """
        Compute the link location of a file.

        Args:
            path: Absolute source path
            group_id: Group the file belongs to

        Returns:
            LinkName relative to the output link directory
        """
        path = Path(path)
        parents = [part for part in path.parent.parts if part != path.anchor]
        if self.link_depth is not None:
            parents = parents[-self.link_depth:] if self.link_depth > 0 else []

        segment = self.SEGMENT_SEPARATOR.join(parents)
        relative_path = f"{segment}/{path.name}" if segment else path.name
        return LinkName(group_dir=self.group_dir_for(group_id), relative_path=relative_path)

    def public_path(self, link_name: LinkName) -> Path:
        return self.link_dir / link_name.group_dir / link_name.relative_path

    def resolve_collisions(self, planned_links: List[Tuple[FileRecord, LinkName]]) -> List[Tuple[FileRecord, LinkName]]:
        """
        Settle link name clashes within one crawl before anything is written.

        Every clash is recorded; the file planned last keeps the link name.

        Args:
            planned_links: (record, link name) pairs in processing order

        Returns:
            The pairs left to publish, one per link location
        """
        by_location: Dict[str, Tuple[FileRecord, LinkName]] = {}
        for record, link_name in planned_links:
            location = str(self.public_path(link_name))
            previous = by_location.pop(location, None)
            if previous is not None and previous[0].path != record.path:
                self.logger.warning(f"Link name clash at {location}: {previous[0].path} replaced by {record.path}")
                if self.diagnostics is not None:
                    self.diagnostics.record_link_collision(location, str(previous[0].path), str(record.path))
            by_location[location] = (record, link_name)
        return list(by_location.values())

    def create_link(self, record: FileRecord, link_name: LinkName) -> Optional[Path]:
        """
        Create the symlink for a file, creating parent directories on demand.

        An existing link to another file at the same place is a collision: it is
        recorded and replaced, so the file processed last wins. Clashes within
        one crawl are already settled by resolve_collisions().

        Returns:
            Path of the created symlink, or None if it could not be created
        """
        source = str(record.path)
        link_path = self.public_path(link_name)

        try:
            link_path.parent.mkdir(parents=True, exist_ok=True)

            if os.path.lexists(link_path):
                if not link_path.is_symlink():
                    raise IsADirectoryError(f"{link_path} exists and is not a symlink")
                old_target = os.readlink(link_path)
                if old_target == source:
                    return link_path
                self.logger.warning(f"Link name clash at {link_path}: {old_target} replaced by {source}")
                if self.diagnostics is not None:
                    self.diagnostics.record_link_collision(str(link_path), old_target, source)
                link_path.unlink()

            os.symlink(source, link_path)
        except OSError as e:
            self.logger.warning(f"Cannot create link {link_path} -> {source}: {e}")
            if self.diagnostics is not None:
                self.diagnostics.record_link_error(str(link_path), str(e))
            return None

        if self.diagnostics is not None:
            self.diagnostics.record_link_created()
        return link_path
