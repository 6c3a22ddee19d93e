from typing import Dict, Iterable, List, Optional

from igvcrawler.core.captures import PathCapture, RegexCapture
from igvcrawler.core.records import FileRecord, Group
from igvcrawler.services.diagnostics import CrawlDiagnostics
from igvcrawler.utils.logger import get_logger


# Files whose path the grouping pattern cannot parse end up here.
FALLBACK_GROUP_ID = "~ungrouped"


def group_sort_key(group_id: str):
    """Real group ids sort alphabetically; the fallback id always sorts last."""
    return (group_id == FALLBACK_GROUP_ID, group_id)


# ============================================================================
# Group Assigner
# ============================================================================


class GroupAssigner:
    """Buckets files by the first capture of the grouping pattern."""

    def __init__(self, pattern, diagnostics: Optional[CrawlDiagnostics] = None):
        """
        Initialize group assigner.

        Args:
            pattern: Grouping regex (string or compiled), or any PathCapture
            diagnostics: Accumulator for ungroupable paths
        """
        if isinstance(pattern, PathCapture):
            self.capture = pattern
        else:
            self.capture = RegexCapture(pattern, first_only=True, label="group pattern")
        self.diagnostics = diagnostics
        self.logger = get_logger()
        self._cache: Dict[str, str] = {}

    def group_id_for(self, record: FileRecord) -> str:
        """Compute (once) the group id of a file."""
        key = str(record.path)
        if key in self._cache:
            return self._cache[key]

        values = self.capture.captures(key)
        group_id = values[0] if values else None
        if group_id in (None, ".", ".."):
            self.logger.debug(f"Cannot derive a group from {key}")
            if self.diagnostics is not None:
                self.diagnostics.record_ungroupable(key)
            group_id = FALLBACK_GROUP_ID

        self._cache[key] = group_id
        return group_id

    def assign(self, records: Iterable[FileRecord]) -> Dict[str, Group]:
        """
        Bucket records into groups.

        Returns:
            Mapping of group id to Group, each file in exactly one group
        """
        groups: Dict[str, Group] = {}
        for record in records:
            group_id = self.group_id_for(record)
            if group_id not in groups:
                groups[group_id] = Group(group_id=group_id, is_fallback=group_id == FALLBACK_GROUP_ID)
            groups[group_id].add(record)
        return groups

    @staticmethod
    def sorted_groups(groups: Dict[str, Group]) -> List[Group]:
        return [groups[group_id] for group_id in sorted(groups, key=group_sort_key)]
