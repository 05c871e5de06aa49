"""
Atomic file writing for installed documents.

Every document is written to a temp file in its destination directory and
renamed into place, so a reader never sees a half-written file. Temp files
are tracked in a TempFileRegistry that removes leftovers on scope exit, at
interpreter exit and on SIGINT/SIGTERM.
"""

import atexit
import contextlib
import logging
import os
import signal
import tempfile
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

TEMP_MARKER = ".tmp."


class WriteError(Exception):
    """Raised when a document cannot be written to disk."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write {path}: {reason}")


class TempFileRegistry:
    """Set of temp files that still need removing if the run is interrupted."""

    def __init__(self):
        self._paths: set[Path] = set()
        self._handlers_installed = False

    def __contains__(self, path: Path) -> bool:
        return path in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def register(self, path: Path) -> None:
        self._paths.add(path)

    def commit(self, path: Path) -> None:
        """Forget a temp file that has been renamed into place."""
        self._paths.discard(path)

    @contextlib.contextmanager
    def track(self, path: Path) -> Iterator[Path]:
        """Register ``path`` for the duration of the block.

        On exit the file is removed unless it was committed first.
        """
        self.register(path)
        try:
            yield path
        finally:
            if path in self._paths:
                self._remove(path)

    def cleanup(self) -> None:
        """Remove every registered temp file."""
        for path in list(self._paths):
            self._remove(path)

    def install_handlers(self) -> None:
        """
        Flush the registry at interpreter exit and on SIGINT/SIGTERM.

        Previously installed signal handlers still run after the cleanup.
        Safe to call more than once.
        """
        if self._handlers_installed:
            return
        self._handlers_installed = True
        atexit.register(self.cleanup)

        for signum in (signal.SIGINT, signal.SIGTERM):
            previous = signal.getsignal(signum)

            def handler(received, frame, previous=previous):
                self.cleanup()
                if callable(previous):
                    previous(received, frame)
                elif previous == signal.SIG_IGN:
                    return
                elif received == signal.SIGINT:
                    raise KeyboardInterrupt
                else:
                    raise SystemExit(128 + received)

            try:
                signal.signal(signum, handler)
            except ValueError:
                # Not in the main thread; atexit still covers normal exit
                logger.debug(f"Could not install handler for signal {signum}")

    def _remove(self, path: Path) -> None:
        self._paths.discard(path)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove temp file {path}: {e}")


class AtomicWriter:
    """
    Writes text files atomically.

    Contract:
    - Content always ends with exactly one trailing newline
    - Parent directories are created as needed
    - The temp file lives next to the destination, so the rename never
      crosses filesystems
    - dry_run=True records the destination without touching disk
    - Errors: WriteError for any filesystem failure; no temp file is left behind
    """

    def __init__(self, registry: TempFileRegistry | None = None, dry_run: bool = False):
        self.registry = registry or TempFileRegistry()
        self.dry_run = dry_run
        self.written: list[Path] = []

    def write(self, path: Path, content: str) -> Path:
        """Write ``content`` to ``path`` and return ``path``.

        Raises:
            WriteError: If the directory or file cannot be written
        """
        content = content.rstrip("\n") + "\n"

        if self.dry_run:
            logger.debug(f"[dry run] would write {path}")
            self.written.append(path)
            return path

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f"{path.name}{TEMP_MARKER}")
        except OSError as e:
            raise WriteError(path, str(e)) from e

        temp_path = Path(temp_name)
        with self.registry.track(temp_path):
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                    f.flush()
                os.chmod(temp_path, 0o644)
                os.replace(temp_path, path)
            except OSError as e:
                raise WriteError(path, str(e)) from e
            self.registry.commit(temp_path)

        logger.debug(f"Wrote {path}")
        self.written.append(path)
        return path
