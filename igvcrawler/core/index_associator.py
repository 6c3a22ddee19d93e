from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from igvcrawler.core.records import FileRecord, Group
from igvcrawler.services.diagnostics import CrawlDiagnostics
from igvcrawler.utils.logger import get_logger


# ============================================================================
# Index Rules
# ============================================================================


@dataclass(frozen=True)
class IndexRule:
    """A data file extension and one accepted naming convention for its index."""

    data_extension: str
    index_extension: str

    def is_data(self, path: str) -> bool:
        return path.lower().endswith(self.data_extension)

    def is_index(self, path: str) -> bool:
        return path.lower().endswith(self.index_extension)

    def expected_index_key(self, data_path: str) -> str:
        return data_path[: -len(self.data_extension)] + self.index_extension

    def found_index_key(self, index_path: str) -> str:
        return index_path[: -len(self.index_extension)] + self.index_extension


# A data extension may appear more than once: both conventions are accepted.
INDEX_RULES = (
    IndexRule(".bam", ".bai"),
    IndexRule(".bam", ".bam.bai"),
    IndexRule(".cram", ".crai"),
    IndexRule(".cram", ".cram.crai"),
    IndexRule(".vcf.gz", ".vcf.gz.tbi"),
)

# Classifier extensions of companion index files; linked, never listed.
INDEX_EXTENSIONS = frozenset({".bai", ".crai", ".tbi"})


@dataclass
class AssociationResult:
    """Outcome of index association for one group."""

    displayable: List[FileRecord] = field(default_factory=list)
    missing_index: List[FileRecord] = field(default_factory=list)
    orphaned_indices: List[FileRecord] = field(default_factory=list)


# ============================================================================
# Index Associator
# ============================================================================


class IndexAssociator:
    """
    Decides which files of a group are displayable.

    Files of a format that needs an index are displayable only when a sibling
    index exists in the same group under any of the accepted conventions.
    Formats without index rules are displayable as they are. Index files
    themselves are never displayable.
    """

    def __init__(
        self,
        rules: Iterable[IndexRule] = INDEX_RULES,
        index_extensions: Iterable[str] = INDEX_EXTENSIONS,
        diagnostics: Optional[CrawlDiagnostics] = None,
    ):
        self.rules = tuple(rules)
        self.index_extensions = frozenset(index_extensions)
        self.data_extensions = frozenset(rule.data_extension for rule in self.rules)
        self.diagnostics = diagnostics
        self.logger = get_logger()

    def is_index_file(self, record: FileRecord) -> bool:
        return record.extension in self.index_extensions

    def needs_index(self, record: FileRecord) -> bool:
        return record.extension in self.data_extensions

    def associate(self, group: Group) -> AssociationResult:
        """
        Find the displayable files of a group.

        Args:
            group: Group with all kept files, index files included

        Returns:
            AssociationResult; displayable files are sorted by path
        """
        files = group.sorted_files()
        confirmed: Set[str] = set()
        matched_indices: Set[str] = set()

        # union over all conventions: one matching index is enough
        for rule in self.rules:
            for data_path, index_path in self._pairs_for_rule(rule, files):
                confirmed.add(data_path)
                matched_indices.add(index_path)

        result = AssociationResult()
        for record in files:
            path = str(record.path)
            if self.is_index_file(record):
                if path not in matched_indices:
                    result.orphaned_indices.append(record)
            elif self.needs_index(record):
                if path in confirmed:
                    result.displayable.append(record)
                else:
                    result.missing_index.append(record)
            else:
                result.displayable.append(record)

        self._record(group, result)
        return result

    def _pairs_for_rule(self, rule: IndexRule, files: List[FileRecord]):
        """Yield (data_path, index_path) for every data file whose index was found."""
        expected: Dict[str, str] = {}
        for record in files:
            path = str(record.path)
            if rule.is_data(path):
                expected[rule.expected_index_key(path)] = path

        for record in files:
            path = str(record.path)
            if not rule.is_index(path):
                continue
            data_path = expected.pop(rule.found_index_key(path), None)
            if data_path is not None:
                yield data_path, path

    def _record(self, group: Group, result: AssociationResult) -> None:
        for record in result.missing_index:
            self.logger.debug(f"[{group.group_id}] no index for {record.path}")
            if self.diagnostics is not None:
                self.diagnostics.record_missing_index(str(record.path))
        for record in result.orphaned_indices:
            self.logger.debug(f"[{group.group_id}] index without data file: {record.path}")
            if self.diagnostics is not None:
                self.diagnostics.record_orphaned_index(str(record.path))
