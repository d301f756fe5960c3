"""Thread-safe holder for the active FilterConfig snapshot."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from core.config import FilterConfig

_EMPTY_CONFIG = FilterConfig()


class ReadWriteLock:
    """Many concurrent readers or one writer.

    Waiting writers block new readers so a configuration reload cannot be
    starved by a steady stream of filtering calls.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class ConfigStore:
    """Publishes immutable configuration snapshots to concurrent readers.

    The lock is not reentrant. Never call into the host or the filter while
    holding it: a host callback that re-enters the plugin and reads the
    configuration would deadlock against a pending write.
    """

    def __init__(self, config: Optional[FilterConfig] = None) -> None:
        self._lock = ReadWriteLock()
        self._config = config

    def get(self) -> FilterConfig:
        """Return the active snapshot, or an empty one when none is installed.

        The returned object is never mutated; it stays valid even if a newer
        snapshot is installed afterwards.
        """

        with self._lock.read():
            if self._config is None:
                return _EMPTY_CONFIG
            return self._config

    def set(self, config: Optional[FilterConfig]) -> None:
        """Replace the active snapshot.

        Installing the snapshot that is already active means someone edited
        it instead of building a new one, so it is rejected.
        """

        with self._lock.write():
            if config is not None and config is self._config:
                raise ValueError("set called with the existing configuration")
            self._config = config
