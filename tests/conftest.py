# -*- coding: utf-8 -*-
"""Shared builders and fakes for the sluicewatch tests."""

from __future__ import annotations

import asyncio
import datetime
from typing import Any, List, Optional

import pytest

from sluicewatch.models import Occurrence, OccurrenceType, Priority, Status

BASE_TIME = datetime.datetime(2025, 3, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)


def make_occ(
    id_: int,
    *,
    sector: str = "ENCHIMENTO",
    type_: OccurrenceType = OccurrenceType.FAULT,
    status: Status = Status.ACTIVE,
    priority: Priority = Priority.MEDIUM,
    description: Optional[str] = None,
    code: Optional[str] = None,
    minutes: int = 0,
) -> Occurrence:
    return Occurrence(
        id=id_,
        status=status,
        type=type_,
        priority=priority,
        description=description if description is not None else f"Occurrence {id_}",
        code=code if code is not None else f"F{id_:03d}",
        sector_code=sector,
        start_timestamp=BASE_TIME + datetime.timedelta(minutes=minutes),
    )


def make_dataset(n: int, **kwargs: Any):
    return tuple(make_occ(i, **kwargs) for i in range(1, n + 1))


class Gate:
    """
    A fetch outcome that completes only when opened.
    Build it inside the running loop.
    """

    def __init__(self, result: Any):
        self.result = result
        self.event = asyncio.Event()
        self.entered = asyncio.Event()

    def open(self) -> None:
        self.event.set()


class ScriptedFetcher:
    """
    fetch_occurrences() consumes the next scripted outcome:
    a dataset, a SyncError instance (raised), or a Gate.
    When the script runs out, `default` is used if set.
    """

    def __init__(self, *outcomes: Any, default: Any = None):
        self.outcomes: List[Any] = list(outcomes)
        self.default = default
        self.calls = 0
        self.resolved: List[int] = []
        self.resolve_result = True

    def push(self, *outcomes: Any) -> None:
        self.outcomes.extend(outcomes)

    async def fetch_occurrences(self):
        self.calls += 1
        if self.outcomes:
            outcome = self.outcomes.pop(0)
        elif self.default is not None:
            outcome = self.default
        else:
            raise AssertionError("unexpected fetch")
        if isinstance(outcome, Gate):
            outcome.entered.set()
            await outcome.event.wait()
            outcome = outcome.result
        if isinstance(outcome, BaseException):
            raise outcome
        return tuple(outcome)

    async def resolve_occurrence(self, occurrence_id: int) -> bool:
        self.resolved.append(occurrence_id)
        return self.resolve_result


@pytest.fixture
def dataset15():
    # 12 faults + 3 events, alternating sectors
    faults = [make_occ(i, sector="ENCHIMENTO" if i % 2 else "PORTAJUSANTE") for i in range(1, 13)]
    events = [make_occ(i, type_=OccurrenceType.EVENT) for i in range(13, 16)]
    return tuple(faults + events)
