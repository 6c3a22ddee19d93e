from collections import Counter
from typing import Dict, List, Optional

from igvcrawler.core.records import FileRecord


# ============================================================================
# Crawl Diagnostics
# ============================================================================


class CrawlDiagnostics:
    """
    Collects every counter and path list produced during one crawl.

    Components only append; reports read the result through get_stats().
    After close() the collected data is read-only.
    """

    def __init__(self):
        self._closed = False
        self._unreadable_dir_names: Counter = Counter()
        self.stats = {
            # Traversal
            "files_scanned": 0,
            "dirs_scanned": 0,
            "dirs_pruned": 0,
            "files_ignored": 0,
            "duplicate_files_skipped": 0,
            "unreadable_dirs": [],
            "deepest_dir": None,
            "deepest_file": None,
            "shallowest_file": None,
            # Classification
            "files_kept": 0,
            "total_bytes": 0,
            "newest_mtime": None,
            "newest_mtime_path": None,
            # Grouping, association, display
            "ungroupable_paths": [],
            "files_without_index": [],
            "orphaned_indices": [],
            "unparseable_paths": [],
            "groups_displayed": 0,
            "files_displayed": 0,
            # Publishing
            "files_linked": 0,
            "link_collisions": [],
            "link_errors": [],
            "crawl_seconds": 0.0,
        }

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("diagnostics are read-only once the crawl has finished")

    # ------------------------------------------------------------------ traversal

    def record_dir_scanned(self, path: str, depth: int) -> None:
        self._check_open()
        self.stats["dirs_scanned"] += 1
        deepest = self.stats["deepest_dir"]
        if deepest is None or depth > deepest["depth"]:
            self.stats["deepest_dir"] = {"depth": depth, "path": path}

    def record_dir_pruned(self, path: str) -> None:
        self._check_open()
        self.stats["dirs_pruned"] += 1

    def record_unreadable_dir(self, path: str, basename: str) -> None:
        """Record a directory that could not be listed, keyed by basename for recurrence counts."""
        self._check_open()
        self.stats["unreadable_dirs"].append(path)
        self._unreadable_dir_names[basename] += 1

    def record_file_scanned(self, path: str, depth: int) -> None:
        self._check_open()
        self.stats["files_scanned"] += 1
        deepest = self.stats["deepest_file"]
        if deepest is None or depth > deepest["depth"]:
            self.stats["deepest_file"] = {"depth": depth, "path": path}
        shallowest = self.stats["shallowest_file"]
        if shallowest is None or depth < shallowest["depth"]:
            self.stats["shallowest_file"] = {"depth": depth, "path": path}

    def record_file_ignored(self, path: str) -> None:
        self._check_open()
        self.stats["files_ignored"] += 1

    def record_duplicate_file(self, path: str) -> None:
        self._check_open()
        self.stats["duplicate_files_skipped"] += 1

    # ------------------------------------------------------------------ classification

    def record_file_kept(self, record: FileRecord) -> None:
        self._check_open()
        self.stats["files_kept"] += 1
        self.stats["total_bytes"] += record.size_bytes
        newest = self.stats["newest_mtime"]
        if newest is None or record.mod_time > newest:
            self.stats["newest_mtime"] = record.mod_time
            self.stats["newest_mtime_path"] = str(record.path)

    # ------------------------------------------------------------------ grouping / association / display

    def record_ungroupable(self, path: str) -> None:
        self._check_open()
        self.stats["ungroupable_paths"].append(path)

    def record_missing_index(self, path: str) -> None:
        self._check_open()
        self.stats["files_without_index"].append(path)

    def record_orphaned_index(self, path: str) -> None:
        self._check_open()
        self.stats["orphaned_indices"].append(path)

    def record_unparseable(self, path: str) -> None:
        self._check_open()
        self.stats["unparseable_paths"].append(path)

    def set_displayed(self, groups: int, files: int) -> None:
        self._check_open()
        self.stats["groups_displayed"] = groups
        self.stats["files_displayed"] = files

    # ------------------------------------------------------------------ publishing

    def record_link_created(self) -> None:
        self._check_open()
        self.stats["files_linked"] += 1

    def record_link_collision(self, link_path: str, old_target: str, new_target: str) -> None:
        self._check_open()
        self.stats["link_collisions"].append({"link": link_path, "old_target": old_target, "new_target": new_target})

    def record_link_error(self, link_path: str, error: str) -> None:
        self._check_open()
        self.stats["link_errors"].append({"link": link_path, "error": error})

    def set_crawl_seconds(self, seconds: float) -> None:
        self._check_open()
        self.stats["crawl_seconds"] = seconds

    # ------------------------------------------------------------------ read side

    def close(self) -> None:
        """Make the collected data read-only."""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def unreadable_dir_names(self) -> Counter:
        return Counter(self._unreadable_dir_names)

    def count(self, key: str) -> int:
        """Size of a list diagnostic, or the value of a counter."""
        value = self.stats[key]
        return len(value) if isinstance(value, list) else value

    def most_common_unreadable(self, limit: Optional[int] = None) -> List[tuple]:
        return self._unreadable_dir_names.most_common(limit)

    def get_stats(self) -> Dict:
        """Get a JSON-ready snapshot of all diagnostics."""
        snapshot = dict(self.stats)
        for key, value in snapshot.items():
            if isinstance(value, list):
                snapshot[key] = list(value)
        snapshot["unreadable_dir_names"] = dict(self._unreadable_dir_names)
        return snapshot
