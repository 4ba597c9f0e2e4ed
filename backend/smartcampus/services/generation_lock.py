from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Iterator

from smartcampus.core.exceptions import GenerationInProgressError
from smartcampus.schemas.generator import GenerationScope


class ScopeLockRegistry:
    """In-process registry of scopes that currently have a generation run in flight."""

    def __init__(self) -> None:
        self._held: set[tuple[str, str]] = set()
        self._lock = Lock()

    def acquire(self, scope: GenerationScope) -> None:
        with self._lock:
            if scope.key in self._held:
                raise GenerationInProgressError(scope.academic_year, scope.semester_type)
            self._held.add(scope.key)

    def release(self, scope: GenerationScope) -> None:
        with self._lock:
            self._held.discard(scope.key)

    def is_locked(self, scope: GenerationScope) -> bool:
        with self._lock:
            return scope.key in self._held

    @contextmanager
    def hold(self, scope: GenerationScope) -> Iterator[None]:
        self.acquire(scope)
        try:
            yield
        finally:
            self.release(scope)

    def clear(self) -> None:
        with self._lock:
            self._held.clear()


_registry = ScopeLockRegistry()


def get_scope_lock_registry() -> ScopeLockRegistry:
    return _registry


def ensure_scope_unlocked(scope: GenerationScope) -> None:
    """Guard for catalog edits: refuse while a run holds the scope."""
    if _registry.is_locked(scope):
        raise GenerationInProgressError(scope.academic_year, scope.semester_type)
