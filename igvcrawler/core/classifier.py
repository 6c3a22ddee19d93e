import os
from pathlib import Path
from typing import Iterable, Iterator, Optional

from igvcrawler.core.records import FileRecord
from igvcrawler.services.diagnostics import CrawlDiagnostics
from igvcrawler.utils.logger import get_logger


# IGV-loadable formats, see https://software.broadinstitute.org/software/igv/FileFormats
# Compared case-insensitively against the end of the file name.
SUPPORTED_EXTENSIONS = (
    # alignments and their indices
    ".bam",
    ".bai",
    ".cram",
    ".crai",
    # variants
    ".vcf.gz",
    ".tbi",
    # annotation, peaks and coverage tracks
    ".bed",
    ".bedgraph",
    ".bigbed",
    ".bigwig",
    ".birdseye_canary_calls",
    ".broadpeak",
    ".narrowpeak",
    ".cbs",
    ".cn",
    ".gct",
    ".gff",
    ".gff3",
    ".gtf",
    ".gistic",
    ".loh",
    ".maf",
    ".mut",
    ".psl",
    ".res",
    ".seg",
    ".snp",
    ".tdf",
    ".wig",
)


# ============================================================================
# Classifier
# ============================================================================


class Classifier:
    """Keeps non-empty files with a supported extension. Everything else is dropped silently."""

    def __init__(
        self, extensions: Iterable[str] = SUPPORTED_EXTENSIONS, diagnostics: Optional[CrawlDiagnostics] = None
    ):
        # longest first, so ".vcf.gz" wins over a shorter suffix
        self.extensions = sorted({ext.lower() for ext in extensions}, key=len, reverse=True)
        self.diagnostics = diagnostics
        self.logger = get_logger()

    def extension_of(self, path) -> Optional[str]:
        """Return the matching allow-list extension (lower case), or None."""
        name = os.path.basename(str(path)).lower()
        for ext in self.extensions:
            if name.endswith(ext) and len(name) > len(ext):
                return ext
        return None

    def classify(self, path: Path) -> Optional[FileRecord]:
        """
        Build a FileRecord for a path worth keeping.

        Args:
            path: Absolute file path

        Returns:
            FileRecord, or None for unlisted extensions, empty or vanished files
        """
        extension = self.extension_of(path)
        if extension is None:
            return None

        try:
            st = os.stat(path)
        except OSError as e:
            self.logger.debug(f"Cannot stat {path}, dropping it: {e}")
            return None

        if st.st_size == 0:
            return None

        record = FileRecord(path=Path(path), extension=extension, size_bytes=st.st_size, mod_time=st.st_mtime)
        if self.diagnostics is not None:
            self.diagnostics.record_file_kept(record)
        return record

    def filter(self, paths: Iterable[Path]) -> Iterator[FileRecord]:
        for path in paths:
            record = self.classify(path)
            if record is not None:
                yield record
