"""Thread-safe scan counters."""

from __future__ import annotations

import threading


class ScanStats:
    """Counts files, directories and errors seen during one scan.

    Shared by every worker of a scan.  Values read while the scan is
    still running are lower bounds on the final totals.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._files = 0
        self._dirs = 0
        self._errors = 0

    @property
    def files_scanned(self) -> int:
        """Number of non-directory entries visited."""
        with self._lock:
            return self._files

    @property
    def dirs_scanned(self) -> int:
        """Number of directories visited."""
        with self._lock:
            return self._dirs

    @property
    def errors(self) -> int:
        """Number of non-fatal errors absorbed."""
        with self._lock:
            return self._errors

    def add_file(self) -> None:
        with self._lock:
            self._files += 1

    def add_dir(self) -> None:
        with self._lock:
            self._dirs += 1

    def add_error(self) -> None:
        with self._lock:
            self._errors += 1

    def as_dict(self) -> dict[str, int]:
        """Return a consistent snapshot of all three counters."""
        with self._lock:
            return {
                "files_scanned": self._files,
                "dirs_scanned": self._dirs,
                "errors": self._errors,
            }

    def __repr__(self) -> str:
        snap = self.as_dict()
        return (
            f"ScanStats(files_scanned={snap['files_scanned']}, "
            f"dirs_scanned={snap['dirs_scanned']}, errors={snap['errors']})"
        )
