# -*- coding: utf-8 -*-
"""
sluicewatch/state.py
Sync state as one immutable value plus pure transitions.
The reconciler performs the effects (fetch, cache write, notify); every
decision about what the new state is lives here.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from sluicewatch.errors import SyncError
from sluicewatch.models import Dataset


class Phase(str, Enum):
    BOOTSTRAPPING = "BOOTSTRAPPING"
    SHOWING_CACHE = "SHOWING_CACHE"
    LOADING = "LOADING"
    READY = "READY"
    ERROR = "ERROR"


class StalePolicy(str, Enum):
    # drop completions older than the last applied fetch
    SEQUENCE = "sequence"
    # whatever completes last wins
    LAST_COMPLETED = "last_completed"


@dataclass(frozen=True)
class SyncModel:
    phase: Phase = Phase.BOOTSTRAPPING
    # None = never fetched and nothing cached
    dataset: Optional[Dataset] = None
    # initial-load failure, shown with a retry affordance
    error: Optional[SyncError] = None
    # background-refresh failure, dismissible
    transient_error: Optional[SyncError] = None
    # manual refreshes in flight
    manual_pending: int = 0
    last_applied_seq: int = 0
    stale_policy: StalePolicy = StalePolicy.SEQUENCE

    @property
    def refreshing(self) -> bool:
        return self.manual_pending > 0

    @property
    def loading(self) -> bool:
        return self.phase is Phase.LOADING


def bootstrap(stale_policy: StalePolicy = StalePolicy.SEQUENCE) -> SyncModel:
    return SyncModel(stale_policy=StalePolicy(stale_policy))


def mounted(model: SyncModel, cached: Optional[Dataset]) -> SyncModel:
    """Cache decision on mount (and on retry)."""
    if cached is not None:
        return replace(model, phase=Phase.SHOWING_CACHE, dataset=cached, error=None)
    if model.dataset is not None:
        # an earlier fetch already gave us data; keep showing it
        return replace(model, error=None)
    return replace(model, phase=Phase.LOADING, error=None)


def fetch_started(model: SyncModel, manual: bool = False) -> SyncModel:
    if not manual:
        return model
    return replace(model, manual_pending=model.manual_pending + 1)


def fetch_abandoned(model: SyncModel, manual: bool = False) -> SyncModel:
    if not manual:
        return model
    return replace(model, manual_pending=max(0, model.manual_pending - 1))


def is_stale(model: SyncModel, seq: int) -> bool:
    return model.stale_policy is StalePolicy.SEQUENCE and seq < model.last_applied_seq


def fetch_succeeded(
    model: SyncModel, seq: int, snapshot: Dataset, manual: bool = False
) -> Tuple[SyncModel, bool]:
    """
    Returns (new model, whether the snapshot must be written to the cache).
    An empty snapshot never replaces data we already have.
    """
    model = fetch_abandoned(model, manual)
    if is_stale(model, seq):
        return model, False
    dataset = snapshot
    if not snapshot and model.dataset:
        dataset = model.dataset
    new = replace(
        model,
        phase=Phase.READY,
        dataset=dataset,
        error=None,
        transient_error=None,
        last_applied_seq=max(seq, model.last_applied_seq),
    )
    return new, bool(snapshot)


def fetch_failed(model: SyncModel, seq: int, err: SyncError, manual: bool = False) -> SyncModel:
    model = fetch_abandoned(model, manual)
    if is_stale(model, seq):
        return model
    if model.dataset is not None:
        return replace(model, transient_error=err)
    return replace(model, phase=Phase.ERROR, error=err)


def error_dismissed(model: SyncModel) -> SyncModel:
    if model.transient_error is None:
        return model
    return replace(model, transient_error=None)
