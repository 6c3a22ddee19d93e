import os
from pathlib import Path
from typing import Iterable, Tuple

from igvcrawler.core.config import ParameterValidator
from igvcrawler.core.link_names import LinkNameResolver
from igvcrawler.core.records import FileRecord, LinkName
from igvcrawler.utils.file_processor import FileProcessor
from igvcrawler.utils.logger import get_logger


# ============================================================================
# Link Tree Publisher
# ============================================================================


class LinkTreePublisher:
    """Clears and repopulates one project's symlink directory."""

    def __init__(self, link_dir: Path, host_base_dir: Path):
        """
        Initialize link tree publisher.

        Args:
            link_dir: The project's link directory (<host_base_dir>/<project>/links)
            host_base_dir: Public root the web server serves
        """
        self.link_dir = Path(link_dir)
        self.host_base_dir = Path(host_base_dir)
        self.logger = get_logger()

    def clear_old_links(self) -> Tuple[int, int]:
        """
        Remove all symlinks below the link directory, then all directories left empty.

        Regular files are never touched, and neither are other mounts. The
        directory shape is checked first, so a misconfiguration cannot point
        this at unrelated content.

        Returns:
            Tuple of (links removed, directories removed)

        Raises:
            UnsafeOutputDirectoryError: If the link directory has the wrong shape
        """
        ParameterValidator.validate_link_dir(self.link_dir, self.host_base_dir)

        root = str(self.link_dir)
        if not os.path.isdir(root) or os.path.islink(root):
            self.logger.info(f"Link directory {root} does not exist yet, nothing to clear")
            return 0, 0

        self.logger.info(f"Clearing out links and empty directories in {root}")
        root_device = os.lstat(root).st_dev
        links_removed = 0
        visited_dirs = []

        for dirpath, dirnames, filenames in os.walk(root, topdown=True, followlinks=False):
            descend = []
            for name in dirnames:
                full_path = os.path.join(dirpath, name)
                if os.path.islink(full_path):
                    links_removed += self._remove_link(full_path)
                elif FileProcessor.is_same_mount(full_path, root_device):
                    descend.append(name)
            dirnames[:] = descend

            for name in filenames:
                full_path = os.path.join(dirpath, name)
                if os.path.islink(full_path):
                    links_removed += self._remove_link(full_path)
            visited_dirs.append(dirpath)

        dirs_removed = 0
        for dirpath in reversed(visited_dirs):
            if dirpath == root:
                continue
            try:
                os.rmdir(dirpath)
                dirs_removed += 1
            except OSError:
                self.logger.debug(f"Keeping non-empty directory {dirpath}")

        self.logger.debug(f"Removed {links_removed} link(s) and {dirs_removed} director(y/ies)")
        return links_removed, dirs_removed

    def _remove_link(self, path: str) -> int:
        try:
            os.unlink(path)
            return 1
        except OSError as e:
            self.logger.warning(f"Cannot remove old link {path}: {e}")
            return 0

    def publish(self, planned_links: Iterable[Tuple[FileRecord, LinkName]], resolver: LinkNameResolver) -> int:
        """
        Create all planned symlinks.

        Args:
            planned_links: (record, link name) pairs in processing order
            resolver: Resolver that creates the links and records collisions

        Returns:
            Number of links created
        """
        self.logger.info(f"Creating links in {self.link_dir}")
        self.link_dir.mkdir(parents=True, exist_ok=True)
        created = 0
        for record, link_name in planned_links:
            if resolver.create_link(record, link_name) is not None:
                created += 1
        return created
