"""Ephemeral per-run work directory with guaranteed release.

The work area owns a temporary directory plus any extra paths registered with
:meth:`WorkArea.track` (partially written binaries, download temp files). All of them
are removed when the ``with`` block exits, whether it finishes normally, raises, or is
interrupted by one of :data:`CLEANUP_SIGNALS`.
"""

from __future__ import annotations

import logging
import os
import shutil
import signal
import tempfile
import threading
import time
from pathlib import Path
from types import FrameType, TracebackType

from gsbuild.errors import BuildInterrupted, ConfigurationError

logger = logging.getLogger(__name__)

WORKDIR_PREFIX = "gitstatus-build."
RETRY_DELAY_SECONDS = 5.0

CLEANUP_SIGNALS: tuple[signal.Signals, ...] = tuple(
    getattr(signal, name)
    for name in ("SIGINT", "SIGQUIT", "SIGTERM")
    if hasattr(signal, name)
)

_FORBIDDEN_WORKDIR_CHARS = frozenset(":=")


class WorkArea:
    def __init__(
        self,
        *,
        tmpdir: str | Path | None = None,
        retry_delay: float = RETRY_DELAY_SECONDS,
        signals: tuple[signal.Signals, ...] = CLEANUP_SIGNALS,
    ) -> None:
        self._tmpdir = Path(tmpdir) if tmpdir is not None else None
        self._retry_delay = retry_delay
        self._signals = signals
        self._tracked: list[Path] = []
        self._previous_handlers: dict[int, object] = {}
        self._path: Path | None = None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise RuntimeError("WorkArea is not active.")
        return self._path

    def track(self, path: Path) -> Path:
        """Register *path* for removal when the work area is released."""
        self._tracked.append(path)
        return path

    def __enter__(self) -> WorkArea:
        tmpdir = self._tmpdir or Path(os.environ.get("TMPDIR") or tempfile.gettempdir())
        self._path = Path(tempfile.mkdtemp(prefix=WORKDIR_PREFIX, dir=tmpdir)).resolve()
        self._install_handlers()
        try:
            _ensure_usable_workdir(self._path)
        except ConfigurationError:
            self.__exit__(None, None, None)
            raise
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._restore_handlers()
        self.cleanup()

    def cleanup(self) -> None:
        paths = [p for p in (self._path, *self._tracked) if p is not None]
        try:
            _remove_paths(paths)
        except OSError as first:
            logger.debug("cleanup failed (%s), retrying in %.1fs", first, self._retry_delay)
            time.sleep(self._retry_delay)
            try:
                _remove_paths(paths)
            except OSError as second:
                logger.warning("[warning] failed to remove build files: %s", second)

    def _install_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in self._signals:
            previous = signal.getsignal(signum)
            self._previous_handlers[signum] = previous if previous is not None else signal.SIG_DFL
            signal.signal(signum, _raise_interrupted)

    def _restore_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)  # type: ignore[arg-type]
        self._previous_handlers.clear()


def _raise_interrupted(signum: int, frame: FrameType | None) -> None:
    raise BuildInterrupted(signum)


def _ensure_usable_workdir(path: Path) -> None:
    text = str(path)
    if any(ch.isspace() for ch in text) or _FORBIDDEN_WORKDIR_CHARS & set(text):
        raise ConfigurationError(f"cannot build in this directory: {text}")


def _remove_paths(paths: list[Path]) -> None:
    for path in paths:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink(missing_ok=True)
