import os
import tempfile
from pathlib import Path


# ============================================================================
# File Processor
# ============================================================================


class FileProcessor:
    """Small filesystem helpers shared by the publishing services."""

    @staticmethod
    def write_atomically(path: Path, content: str) -> Path:
        """
        Replace a text file in one step.

        The content goes to a temporary file in the same directory, which then
        replaces the target, so readers see either the old or the new file.

        Args:
            path: Destination file
            content: Text to write

        Returns:
            Path of the written file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.chmod(temp_name, 0o644)
            os.replace(temp_name, path)
        except BaseException:
            if os.path.exists(temp_name):
                os.unlink(temp_name)
            raise
        return path

    @staticmethod
    def is_same_mount(path: str, device: int) -> bool:
        try:
            return os.lstat(path).st_dev == device
        except OSError:
            return False
