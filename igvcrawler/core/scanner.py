import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set, Tuple

from igvcrawler.services.diagnostics import CrawlDiagnostics
from igvcrawler.utils.logger import get_logger


# Working directories of the workflow manager; never contain publishable results.
WORK_DIR_NAME = "roddyExecutionStore"


# ============================================================================
# Path Scanner
# ============================================================================


class PathScanner:
    """Walks the scan roots depth-first and yields every readable, non-pruned file."""

    def __init__(
        self,
        scan_dirs: Iterable[Path],
        prune_dirs: Optional[List[str]] = None,
        prune_files: Optional[List[str]] = None,
        follow_symlinks: bool = False,
        diagnostics: Optional[CrawlDiagnostics] = None,
    ):
        """
        Initialize path scanner.

        Args:
            scan_dirs: Absolute directories to walk, in order
            prune_dirs: Basename globs of directories not to descend into
            prune_files: Basename globs of files to skip (counted as ignored)
            follow_symlinks: Descend into symlinked directories
            diagnostics: Accumulator for counters and unreadable paths
        """
        self.scan_dirs = [Path(scan_dir) for scan_dir in scan_dirs]
        self.prune_dirs = list(prune_dirs or [])
        self.prune_files = list(prune_files or [])
        self.follow_symlinks = follow_symlinks
        self.diagnostics = diagnostics if diagnostics is not None else CrawlDiagnostics()
        self.logger = get_logger()

        self.files_visited = 0
        self.dirs_skipped = 0
        self._visited_dirs: Set[Tuple[int, int]] = set()
        self._seen_files: Set[str] = set()

    def is_pruned_dir(self, name: str) -> bool:
        if name.startswith(".") or name == WORK_DIR_NAME:
            return True
        return any(fnmatchcase(name, pattern) for pattern in self.prune_dirs)

    def is_pruned_file(self, name: str) -> bool:
        return any(fnmatchcase(name, pattern) for pattern in self.prune_files)

    def scan(self) -> Iterator[Path]:
        """
        Lazily yield absolute paths of all files below the scan roots.

        Unreadable directories are recorded and their subtree skipped; the
        walk itself never raises for a single bad entry.
        """
        for scan_dir in self.scan_dirs:
            self.logger.debug(f"Scanning root {scan_dir}")
            yield from self._walk(scan_dir)

    def __iter__(self) -> Iterator[Path]:
        return self.scan()

    def _walk(self, root: Path) -> Iterator[Path]:
        stack: List[Tuple[str, int]] = [(str(root), 0)]

        while stack:
            directory, depth = stack.pop()
            if not self._first_visit(directory):
                self.logger.debug(f"Already visited {directory}, skipping")
                continue

            entries = self._list_directory(directory)
            if entries is None:
                continue
            self.diagnostics.record_dir_scanned(directory, depth)

            subdirs = []
            for entry in entries:
                if self._is_directory(entry):
                    if self.is_pruned_dir(entry.name):
                        self.dirs_skipped += 1
                        self.diagnostics.record_dir_pruned(entry.path)
                        continue
                    subdirs.append(entry.path)
                    continue

                file_path = self._accept_file(entry, depth + 1)
                if file_path is not None:
                    yield file_path

            # reversed, so the alphabetically first subdirectory is walked first
            for subdir in reversed(subdirs):
                stack.append((subdir, depth + 1))

    def _list_directory(self, directory: str) -> Optional[List[os.DirEntry]]:
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            self.logger.warning(f"Skipping unreadable directory {directory}: {e.strerror or e}")
            self.diagnostics.record_unreadable_dir(directory, os.path.basename(directory.rstrip(os.sep)))
            return None
        entries.sort(key=lambda entry: entry.name)
        return entries

    def _first_visit(self, directory: str) -> bool:
        """Cycle guard: each physical directory is walked once, however it is reached."""
        try:
            st = os.stat(directory)
        except OSError:
            # let _list_directory report it
            return True
        key = (st.st_dev, st.st_ino)
        if key in self._visited_dirs:
            return False
        self._visited_dirs.add(key)
        return True

    def _is_directory(self, entry: os.DirEntry) -> bool:
        try:
            if entry.is_dir(follow_symlinks=False):
                return True
            if self.follow_symlinks and entry.is_symlink() and entry.is_dir():
                return True
        except OSError as e:
            self.logger.debug(f"Cannot stat {entry.path}: {e}")
        return False

    def _accept_file(self, entry: os.DirEntry, depth: int) -> Optional[Path]:
        try:
            if not entry.is_file():
                # broken symlinks, sockets and fifos; also directory symlinks when not following
                self.logger.debug(f"Not a regular file: {entry.path}")
                return None
        except OSError as e:
            self.logger.debug(f"Cannot stat {entry.path}: {e}")
            return None

        if self.is_pruned_file(entry.name):
            self.diagnostics.record_file_ignored(entry.path)
            return None

        if self.follow_symlinks:
            real_path = os.path.realpath(entry.path)
            if real_path in self._seen_files:
                self.diagnostics.record_duplicate_file(entry.path)
                return None
            self._seen_files.add(real_path)

        self.files_visited += 1
        self.diagnostics.record_file_scanned(entry.path, depth)
        return Path(entry.path)
