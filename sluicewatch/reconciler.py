# -*- coding: utf-8 -*-
"""
sluicewatch/reconciler.py
Owns the authoritative dataset:
- mount: cache-first render, then a silent (or, with no cache, visible) fetch
- refresh: fetch -> pure transition -> write-through to the cache -> notify
- dispose: cancel in-flight fetches; late completions are ignored
"""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Protocol, Set

from sluicewatch import state
from sluicewatch.errors import SyncError
from sluicewatch.models import Dataset
from sluicewatch.state import Phase, StalePolicy, SyncModel
from sluicewatch.storage import CacheStore

Listener = Callable[[SyncModel], None]


class Fetcher(Protocol):
    async def fetch_occurrences(self) -> Dataset: ...

    async def resolve_occurrence(self, occurrence_id: int) -> bool: ...


class Reconciler:
    def __init__(
        self,
        fetcher: Fetcher,
        cache: CacheStore,
        *,
        stale_policy: StalePolicy = StalePolicy.SEQUENCE,
    ):
        self.fetcher = fetcher
        self.cache = cache
        self.model: SyncModel = state.bootstrap(stale_policy)
        self._seq = 0
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: List[Listener] = []
        self._disposed = False

    # ---------- read side ----------
    @property
    def phase(self) -> Phase:
        return self.model.phase

    @property
    def dataset(self) -> Optional[Dataset]:
        return self.model.dataset

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _set(self, model: SyncModel) -> None:
        if model == self.model:
            return
        self.model = model
        for listener in list(self._listeners):
            try:
                listener(model)
            except Exception as e:
                print(f"[reconciler] listener error: {e!r}")

    # ---------- lifecycle ----------
    def mount(self) -> asyncio.Task:
        """
        Decide from the cache, publish that state, then start the first fetch.
        Returns the fetch task; callers don't have to await it.
        """
        if self._disposed:
            raise RuntimeError("reconciler already disposed")
        cached = self.cache.read()
        self._set(state.mounted(self.model, cached))
        if cached is not None:
            print(f"[reconciler] showing {len(cached)} cached occurrences, refreshing in background")
        else:
            print("[reconciler] no cache, loading")
        return self._spawn(self.refresh())

    def retry(self) -> asyncio.Task:
        return self.mount()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        for t in list(self._tasks):
            t.cancel()
        print("[reconciler] disposed")

    async def aclose(self) -> None:
        self.dispose()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def wait_idle(self) -> None:
        """Wait until no spawned fetch is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ---------- refresh ----------
    async def refresh(self, *, manual: bool = False) -> bool:
        """
        Run one fetch. Returns True when its snapshot was applied.
        Classified failures never raise out of here.
        """
        if self._disposed:
            return False
        self._seq += 1
        seq = self._seq
        self._set(state.fetch_started(self.model, manual))

        try:
            snapshot = await self.fetcher.fetch_occurrences()
        except asyncio.CancelledError:
            if not self._disposed:
                self._set(state.fetch_abandoned(self.model, manual))
            raise
        except SyncError as e:
            if self._disposed:
                return False
            stale = state.is_stale(self.model, seq)
            self._set(state.fetch_failed(self.model, seq, e, manual))
            if stale:
                print(f"[reconciler] dropped stale failure #{seq}: {e}")
            elif self.model.phase is Phase.ERROR:
                print(f"[reconciler] initial load failed ({e.kind}): {e}")
            else:
                print(f"[reconciler] background refresh failed ({e.kind}), keeping current data: {e}")
            return False

        if self._disposed:
            return False
        stale = state.is_stale(self.model, seq)
        model, write_cache = state.fetch_succeeded(self.model, seq, snapshot, manual)
        if stale:
            self._set(model)
            print(f"[reconciler] dropped stale snapshot #{seq} (applied #{model.last_applied_seq})")
            return False
        if write_cache:
            self.cache.write(snapshot)
        elif model.dataset:
            print("[reconciler] empty snapshot, keeping current data")
        self._set(model)
        return True

    def dismiss_error(self) -> None:
        self._set(state.error_dismissed(self.model))

    async def resolve_occurrence(self, occurrence_id: int) -> bool:
        """Opaque remote call; the dataset changes only on the next refresh."""
        ok = await self.fetcher.resolve_occurrence(occurrence_id)
        print(f"[reconciler] resolve #{occurrence_id} -> {ok}")
        return ok
