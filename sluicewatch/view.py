# -*- coding: utf-8 -*-
"""
sluicewatch/view.py
What the presentation layer talks to. ViewController keeps the filter
criteria and current page, derives the page from the reconciler's dataset,
and runs the polling task while mounted.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from sluicewatch.filters import PAGE_SIZE, apply_filters, paginate, total_pages
from sluicewatch.models import (
    DEFAULT_CRITERIA,
    FilterCriteria,
    Occurrence,
    parse_filter_value,
)
from sluicewatch.reconciler import Reconciler
from sluicewatch.scheduler import PollHandle, start_polling
from sluicewatch.state import Phase, SyncModel
from sluicewatch.utils import format_local, relative_age

DEFAULT_POLL_INTERVAL = 30.0

STATUS_LABELS = {"ACTIVE": "Active", "RESOLVED": "Resolved", "UNDER_REVIEW": "Under review"}
TYPE_LABELS = {"FAULT": "Fault", "EVENT": "Event"}
PRIORITY_LABELS = {"HIGH": "High", "MEDIUM": "Medium", "LOW": "Low"}


@dataclass(frozen=True)
class ViewSnapshot:
    phase: Phase
    rows: Tuple[Occurrence, ...]
    page: int
    total_pages: int
    filtered_count: int
    total_count: int
    error: Optional[str]
    transient_error: Optional[str]
    refreshing: bool
    loading: bool
    criteria: FilterCriteria

    @property
    def has_active_filters(self) -> bool:
        return not self.criteria.is_default


SnapshotListener = Callable[[ViewSnapshot], None]


class ViewController:
    def __init__(
        self,
        reconciler: Reconciler,
        *,
        page_size: int = PAGE_SIZE,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.reconciler = reconciler
        self.page_size = page_size
        self.poll_interval = poll_interval
        self.criteria: FilterCriteria = DEFAULT_CRITERIA
        self.page_number = 1
        self._filtered: Tuple[Occurrence, ...] = ()
        self._source = None
        self._poller: Optional[PollHandle] = None
        self._listeners: List[SnapshotListener] = []
        self._unsubscribe = reconciler.subscribe(self._on_model)
        self._recompute()

    # ---------- derived view ----------
    def _recompute(self) -> None:
        self._source = self.reconciler.dataset
        filtered = tuple(apply_filters(self._source or (), self.criteria))
        if filtered != self._filtered:
            self.page_number = 1
        self._filtered = filtered

    def _on_model(self, model: SyncModel) -> None:
        if model.dataset is not self._source:
            self._recompute()
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception as e:
                print(f"[view] listener error: {e!r}")

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @property
    def filtered(self) -> Tuple[Occurrence, ...]:
        return self._filtered

    @property
    def total_pages(self) -> int:
        return total_pages(len(self._filtered), self.page_size)

    def snapshot(self) -> ViewSnapshot:
        model = self.reconciler.model
        page = paginate(self._filtered, self.page_size, self.page_number)
        return ViewSnapshot(
            phase=model.phase,
            rows=page.items,
            page=page.page,
            total_pages=page.total_pages,
            filtered_count=page.total,
            total_count=len(model.dataset or ()),
            error=str(model.error) if model.error else None,
            transient_error=str(model.transient_error) if model.transient_error else None,
            refreshing=model.refreshing,
            loading=model.loading,
            criteria=self.criteria,
        )

    # ---------- lifecycle ----------
    def mount(self) -> None:
        if self._poller is not None:
            return
        self.reconciler.mount()
        self._poller = start_polling(self._poll_tick, self.poll_interval, name="poller")

    async def _poll_tick(self) -> None:
        await self.reconciler.refresh()

    async def unmount(self) -> None:
        if self._poller is not None:
            self._poller.cancel()
            await self._poller.wait()
            self._poller = None
        self._unsubscribe()
        await self.reconciler.aclose()

    # ---------- handlers ----------
    def _set_criteria(self, criteria: FilterCriteria) -> None:
        if criteria == self.criteria:
            return
        self.criteria = criteria
        # any criteria change starts over at page 1, even if the rows are the same
        self.page_number = 1
        self._recompute()
        self._notify()

    def set_search_text(self, text: str) -> None:
        self._set_criteria(replace(self.criteria, search_text=text or ""))

    def set_filter(self, field: str, value: Any) -> None:
        parsed = parse_filter_value(field, value)
        self._set_criteria(replace(self.criteria, **{field: parsed}))

    def clear_filters(self) -> None:
        self._set_criteria(DEFAULT_CRITERIA)

    def set_page(self, n: int) -> bool:
        """Out-of-range requests are ignored."""
        if n < 1 or n > self.total_pages:
            return False
        if n != self.page_number:
            self.page_number = n
            self._notify()
        return True

    def next_page(self) -> bool:
        return self.set_page(self.page_number + 1)

    def prev_page(self) -> bool:
        return self.set_page(self.page_number - 1)

    async def manual_refresh(self) -> bool:
        if self.reconciler.disposed:
            return False
        if self.reconciler.phase in (Phase.BOOTSTRAPPING, Phase.ERROR):
            return await self.retry()
        return await self.reconciler.refresh(manual=True)

    async def retry(self) -> bool:
        if self.reconciler.disposed:
            return False
        return await self.reconciler.retry()

    def dismiss_error(self) -> None:
        self.reconciler.dismiss_error()

    async def resolve_occurrence(self, occurrence_id: int) -> bool:
        return await self.reconciler.resolve_occurrence(occurrence_id)


def display_row(
    occ: Occurrence, tz_name: str, now: Optional[datetime.datetime] = None
) -> Dict[str, Any]:
    """Table-ready labels for one occurrence."""
    return {
        "id": occ.id,
        "sector": occ.sector_name,
        "sector_code": occ.sector_code,
        "code": occ.code,
        "description": occ.description,
        "type": TYPE_LABELS.get(occ.type.value, occ.type.value),
        "status": STATUS_LABELS.get(occ.status.value, occ.status.value),
        "priority": PRIORITY_LABELS.get(occ.priority.value, occ.priority.value),
        "started": format_local(occ.start_timestamp, tz_name),
        "age": relative_age(occ.start_timestamp, now),
    }
