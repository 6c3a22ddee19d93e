from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Set


# ============================================================================
# Crawl Records
# ============================================================================


@dataclass(frozen=True)
class FileRecord:
    """A kept file, created once during the scan and never changed afterwards."""

    path: Path
    extension: str
    size_bytes: int
    mod_time: float

    @property
    def name(self) -> str:
        return self.path.name

    def sort_key(self) -> str:
        return str(self.path)


@dataclass
class Group:
    """Files sharing one grouping-pattern capture value."""

    group_id: str
    files: List[FileRecord] = field(default_factory=list)
    is_fallback: bool = False
    _paths: Set[Path] = field(default_factory=set, repr=False, compare=False)

    def __post_init__(self):
        self._paths = {record.path for record in self.files}

    def add(self, record: FileRecord) -> None:
        # ordered set: a path is added once even if the scanner reports it twice
        if record.path not in self._paths:
            self._paths.add(record.path)
            self.files.append(record)

    def sorted_files(self) -> List[FileRecord]:
        return sorted(self.files, key=FileRecord.sort_key)


@dataclass(frozen=True)
class LinkName:
    """Location of a symlink inside the output tree."""

    group_dir: str
    relative_path: str

    @property
    def public_path(self) -> str:
        """Path relative to the output link directory."""
        return f"{self.group_dir}/{self.relative_path}"


@dataclass(frozen=True)
class ListingEntry:
    """One displayable file as handed to report and page rendering."""

    disk_link_name: str
    display_label: str
    source_path: str


@dataclass
class ListingGroup:
    """One group of the user-facing listing."""

    group_id: str
    group_dir: str
    files: List[ListingEntry] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "group_id": self.group_id,
            "group_dir": self.group_dir,
            "files": [
                {
                    "disk_link_name": entry.disk_link_name,
                    "display_label": entry.display_label,
                    "source_path": entry.source_path,
                }
                for entry in self.files
            ],
        }
