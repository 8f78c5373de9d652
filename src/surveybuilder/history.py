"""
Undo/redo history for an editing session.

Two stacks of Survey snapshots:
    past   - older states, oldest first, most recent last
    future - undone states, in the order redo replays them (soonest first)

Any new record after an undo discards the redo branch.

Snapshots are immutable Survey values, so a snapshot is a plain reference:
later edits build new Surveys and never touch a recorded one.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, Optional, Tuple

from surveybuilder.model import Survey


logger = logging.getLogger(__name__)


class History:
    """
    Linear snapshot history.

    Args:
        limit: Maximum number of undo steps kept; None keeps everything.
            When exceeded, the oldest snapshot is dropped.
    """

    def __init__(self, limit: Optional[int] = None):
        if limit is not None and limit < 0:
            raise ValueError("history limit must be >= 0")
        self.limit = limit
        self._past: Deque[Survey] = deque()
        self._future: Deque[Survey] = deque()

    @property
    def past(self) -> Tuple[Survey, ...]:
        return tuple(self._past)

    @property
    def future(self) -> Tuple[Survey, ...]:
        return tuple(self._future)

    @property
    def can_undo(self) -> bool:
        return len(self._past) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._future) > 0

    def record(self, snapshot: Survey) -> None:
        """Push snapshot onto past and discard the redo branch."""
        self._past.append(snapshot)
        if self.limit is not None:
            while len(self._past) > self.limit:
                self._past.popleft()
        if self._future:
            logger.debug("Discarding %d redo state(s)", len(self._future))
        self._future.clear()

    def undo(self, current: Survey) -> Optional[Survey]:
        """
        Step back one state.

        Args:
            current: The live survey, pushed onto the front of future

        Returns:
            The state to make live, or None if there is nothing to undo
        """
        if not self._past:
            return None
        previous = self._past.pop()
        self._future.appendleft(current)
        return previous

    def redo(self, current: Survey) -> Optional[Survey]:
        """
        Step forward one state.

        Args:
            current: The live survey, pushed onto the end of past

        Returns:
            The state to make live, or None if there is nothing to redo
        """
        if not self._future:
            return None
        following = self._future.popleft()
        self._past.append(current)
        return following

    def clear(self) -> None:
        self._past.clear()
        self._future.clear()

    def rewrite(self, fn: Callable[[Survey], Survey]) -> None:
        """Apply fn to every stored snapshot, keeping order."""
        self._past = deque(fn(s) for s in self._past)
        self._future = deque(fn(s) for s in self._future)

    def __len__(self) -> int:
        return len(self._past) + len(self._future)
