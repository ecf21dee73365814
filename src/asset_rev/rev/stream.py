"""Push-based stage chaining for hosts driving the revision stages."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from asset_rev.rev.models import FileRecord


class Stage(Protocol):
    """One streaming transform: per-record processing then a single flush."""

    def process(self, record: FileRecord) -> list[FileRecord]:
        """Consume one record and return the records to forward."""

    def flush(self) -> list[FileRecord]:
        """Signal end of input and return any held-back records."""


def run_stages(records: Iterable[FileRecord], *stages: Stage) -> list[FileRecord]:
    """Drive records through stages in order and return what the last one emits.

    Each record travels through the whole chain before the next one is read.
    At end of input every stage is flushed in order, and its flushed records
    are fed through the stages downstream of it before those are flushed.
    """
    output: list[FileRecord] = []
    for record in records:
        output.extend(_feed(record, stages))
    for index, stage in enumerate(stages):
        downstream = stages[index + 1 :]
        for record in stage.flush():
            output.extend(_feed(record, downstream))
    return output


def _feed(record: FileRecord, stages: Sequence[Stage]) -> list[FileRecord]:
    pending = [record]
    for stage in stages:
        forwarded: list[FileRecord] = []
        for item in pending:
            forwarded.extend(stage.process(item))
        pending = forwarded
        if not pending:
            break
    return pending
