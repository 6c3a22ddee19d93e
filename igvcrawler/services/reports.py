import json
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from igvcrawler.core.records import ListingGroup
from igvcrawler.utils.file_processor import FileProcessor
from igvcrawler.utils.format import format_duration, format_size, format_timestamp, printable_text
from igvcrawler.utils.logger import get_logger


# (label, stats key) pairs of the list diagnostics, in report order
LIST_SECTIONS = [
    ("unreadable directories", "unreadable_dirs"),
    ("undetectable groups", "ungroupable_paths"),
    ("files without index", "files_without_index"),
    ("orphaned index files", "orphaned_indices"),
    ("symlink name clashes", "link_collisions"),
    ("link errors", "link_errors"),
]


# ============================================================================
# Report Generator
# ============================================================================


class ReportGenerator:
    """Formats crawl diagnostics as short/long text reports and as JSON."""

    LABEL_WIDTH = 40

    def __init__(self, project_name: str, display_mode: str = "nameonly"):
        """
        Initialize report generator.

        Args:
            project_name: Project the crawl ran for
            display_mode: Display mode of the crawl; unparseable paths are only reported for regex modes
        """
        self.project_name = project_name
        self.show_unparseable = display_mode.startswith("regex")
        self.logger = get_logger()

    def _line(self, label: str, value) -> str:
        return f"{(label + ':').ljust(self.LABEL_WIDTH)}{value}"

    def _count_lines(self, stats: Dict) -> List[str]:
        return [
            self._line("total files scanned (excl. unreadable)", stats["files_scanned"]),
            self._line("total directories scanned", stats["dirs_scanned"]),
            self._line("total groups displayed", stats["groups_displayed"]),
            self._line("total files displayed", stats["files_displayed"]),
            self._line("total files linked", stats["files_linked"]),
        ]

    def _sections(self) -> List[tuple]:
        sections = list(LIST_SECTIONS)
        if self.show_unparseable:
            sections.append(("unparseable paths", "unparseable_paths"))
        return sections

    def short_report(self, stats: Dict) -> str:
        """Counts-only report."""
        lines = [f"== After-action report for {self.project_name} =="]
        lines.extend(self._count_lines(stats))
        lines.append(self._line("files ignored by prune rules", stats["files_ignored"]))
        for label, key in self._sections():
            lines.append(self._line(label, len(stats[key])))
        lines.append(self._line("newest file modification", format_timestamp(stats["newest_mtime"])))
        if stats.get("crawl_seconds"):
            lines.append(self._line("crawl duration", format_duration(stats["crawl_seconds"])))
        return printable_text("\n".join(lines) + "\n")

    def long_report(self, stats: Dict) -> str:
        """Report with complete, sorted path lists; undecodable path bytes are shown as \\xNN."""
        lines = [f"== After-action report for {self.project_name} =="]
        lines.extend(self._count_lines(stats))
        lines.append(self._line("files ignored by prune rules", stats["files_ignored"]))
        lines.append(self._line("directories pruned", stats["dirs_pruned"]))
        lines.append(self._line("duplicate files skipped", stats["duplicate_files_skipped"]))
        lines.append(self._line("total size of kept files", format_size(stats["total_bytes"])))
        newest = format_timestamp(stats["newest_mtime"])
        if stats["newest_mtime_path"]:
            newest += f" ({stats['newest_mtime_path']})"
        lines.append(self._line("newest file modification", newest))
        depth_lines = (
            ("deepest directory", "deepest_dir"),
            ("deepest file", "deepest_file"),
            ("shallowest file", "shallowest_file"),
        )
        for label, key in depth_lines:
            depth_info = stats.get(key)
            if depth_info:
                lines.append(self._line(label, f"depth {depth_info['depth']}: {depth_info['path']}"))
        if stats.get("crawl_seconds"):
            lines.append(self._line("crawl duration", format_duration(stats["crawl_seconds"])))

        for label, key in self._sections():
            lines.extend(self._section(label, [self._describe(key, item) for item in stats[key]]))

        recurring = stats.get("unreadable_dir_names", {})
        if recurring:
            ranked = sorted(recurring.items(), key=lambda item: (-item[1], item[0]))
            counted = [f"{count:>6}x {name}" for name, count in ranked]
            lines.extend(self._section("unreadable directory names", counted, sort=False))
        return printable_text("\n".join(lines) + "\n")

    @staticmethod
    def _describe(key: str, item) -> str:
        if key == "link_collisions":
            return f"{item['old_target']} -> {item['new_target']}"
        if key == "link_errors":
            return f"{item['link']}: {item['error']}"
        return str(item)

    @staticmethod
    def _section(header: str, items: List[str], sort: bool = True) -> List[str]:
        ordered = sorted(items) if sort else items
        return [f"=== {len(items)} {header} ==="] + [f"  {item}" for item in ordered]

    def render(self, stats: Dict, report_mode: str = "counts") -> str:
        return self.long_report(stats) if report_mode == "full" else self.short_report(stats)

    def write_log_file(self, log_file: Path, stats: Dict) -> Optional[Path]:
        """
        Write the long report to the project log file.

        A failure is only a warning; the crawl result does not depend on it.
        """
        try:
            log_file = Path(log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(log_file, "w", encoding="utf-8") as f:
                f.write(self.long_report(stats))
        except OSError as e:
            self.logger.warning(f"Couldn't open {log_file} for writing: {e}")
            return None
        return log_file

    def write_json(
        self,
        file_path: Path,
        stats: Dict,
        listing: Iterable[ListingGroup],
        scan_dirs: Optional[List[str]] = None,
        run_uuid: Optional[str] = None,
    ) -> Path:
        """Write diagnostics and the grouped listing as a structured JSON report."""
        listing = list(listing)
        metadata = {
            "title": f"IGV crawl report: {self.project_name}",
            "generated": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        }
        if run_uuid:
            metadata["run_id"] = run_uuid
        if scan_dirs:
            metadata["scan_dirs"] = [str(scan_dir) for scan_dir in scan_dirs]

        crawl_seconds = stats.get("crawl_seconds", 0)
        summary = {
            "files_scanned": stats["files_scanned"],
            "files_kept": stats["files_kept"],
            "files_linked": stats["files_linked"],
            "groups_displayed": stats["groups_displayed"],
            "files_displayed": stats["files_displayed"],
            "total_size_bytes": stats["total_bytes"],
            "newest_mtime": format_timestamp(stats["newest_mtime"]),
            "crawl_time": {"total_seconds": crawl_seconds, "formatted": format_duration(crawl_seconds)},
        }

        report = {
            "metadata": metadata,
            "summary": summary,
            "diagnostics": stats,
            "listing": [group.as_dict() for group in listing],
        }

        return FileProcessor.write_atomically(Path(file_path), json.dumps(report, indent=2, default=str) + "\n")
