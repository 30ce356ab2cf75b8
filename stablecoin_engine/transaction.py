"""Transaction boundary: serialize, journal, commit or roll back."""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from .errors import ReentrantCall
from .interfaces.journal import Journaled

logger = logging.getLogger(__name__)


class Transactor:
    """Run each guarded operation as one all-or-nothing step.

    Entering ``atomic()`` while another guarded operation is in flight raises
    ``ReentrantCall``, whether the nested call comes from a callback on the
    same thread or from another thread; calls are never queued.

    Participants are state owned by this transactor alone (the ledger); they
    are snapshotted on entry and restored if the block raises. Shared state
    such as tokens is undone through ``on_rollback()`` instead, which
    reverses only the operation's own changes.

    ``reading()`` waits until no operation is in flight on another thread, so
    readers never observe intermediate state.
    """

    def __init__(self, participants: Sequence[Journaled]) -> None:
        self._participants = tuple(participants)
        self._guard = threading.Lock()
        self._idle = threading.Condition()
        self._owner: int | None = None
        self._undo: list[Callable[[], Any]] = []

    @property
    def in_flight(self) -> bool:
        return self._owner is not None

    def on_rollback(self, undo: Callable[[], Any]) -> None:
        """Register ``undo`` to run if the operation in flight fails."""
        if self._owner != threading.get_ident():
            raise RuntimeError("on_rollback() called outside the operation in flight")
        self._undo.append(undo)

    @contextmanager
    def atomic(self, name: str) -> Iterator[None]:
        if not self._guard.acquire(blocking=False):
            raise ReentrantCall(f"{name}: another operation is in flight")
        try:
            with self._idle:
                self._owner = threading.get_ident()
            self._undo = []
            snapshots: list[tuple[Journaled, Any]] = [
                (p, p.snapshot()) for p in self._participants
            ]
            try:
                yield
            except BaseException:
                for undo in reversed(self._undo):
                    undo()
                for participant, state in reversed(snapshots):
                    participant.restore(state)
                logger.debug("%s rolled back (%d reversals)", name, len(self._undo))
                raise
        finally:
            self._undo = []
            with self._idle:
                self._owner = None
                self._idle.notify_all()
            self._guard.release()

    @contextmanager
    def reading(self) -> Iterator[None]:
        me = threading.get_ident()
        with self._idle:
            self._idle.wait_for(lambda: self._owner in (None, me))
            yield
