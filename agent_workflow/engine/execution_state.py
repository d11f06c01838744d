"""
Execution State - Outputs of completed steps, keyed by output key
"""

import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import Dict, Iterator

from agent_workflow.models.execution import StepResult


class ExecutionState(Mapping):
    """
    Shared state of one workflow run.

    Created fresh per run. Entries keep insertion order and are never
    removed during a run; a later step with the same output key overwrites
    the value in place. Only the runner writes, and only between steps, so
    readers see a consistent view. Parallel groups read from snapshot()
    and publish through merge(), which swaps a whole batch in under a lock.
    """

    def __init__(self):
        self._entries: Dict[str, StepResult] = {}
        self._lock = threading.Lock()

    def __getitem__(self, key: str) -> StepResult:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ExecutionState({list(self._entries)})"

    def set(self, key: str, result: StepResult) -> None:
        """
        Store a step result

        Args:
            key: Output key declared by the step
            result: Result produced by the step (its step_name names the producer)
        """
        with self._lock:
            self._entries[key] = result

    def merge(self, batch: Dict[str, StepResult]) -> None:
        """
        Store several results as one atomic update

        Args:
            batch: Output key -> result, in the order they should be inserted
        """
        if not batch:
            return
        with self._lock:
            entries = dict(self._entries)
            entries.update(batch)
            self._entries = entries

    def snapshot(self) -> Mapping:
        """
        Read-only copy of the current entries

        Later writes to this state are not visible through the snapshot.
        """
        with self._lock:
            return MappingProxyType(dict(self._entries))

    def to_dict(self) -> Dict[str, StepResult]:
        """Plain dict copy of all entries"""
        with self._lock:
            return dict(self._entries)
