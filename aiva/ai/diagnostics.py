from __future__ import annotations

from typing import List, Optional, Tuple

from aiva.ai.types import AttemptRecord


class DiagnosticsCollector:
    """
    Append-only log of every attempt made during ONE invocation.

    The orchestrator owns the instance and drops it when the invocation
    ends; nothing is shared between invocations.
    """

    def __init__(self) -> None:
        self._records: List[AttemptRecord] = []

    def record(self, rec: AttemptRecord) -> None:
        self._records.append(rec)

    # ---------------------------------------------------------------- views
    @property
    def records(self) -> Tuple[AttemptRecord, ...]:
        return tuple(self._records)

    @property
    def failed_attempts(self) -> Tuple[AttemptRecord, ...]:
        return tuple(r for r in self._records if r.failed)

    @property
    def success_record(self) -> Optional[AttemptRecord]:
        if self._records and not self._records[-1].failed:
            return self._records[-1]
        return None

    def for_model(self, name: str) -> Tuple[AttemptRecord, ...]:
        return tuple(r for r in self._records if r.model == name)

    def __len__(self) -> int:
        return len(self._records)
