# -*- coding: utf-8 -*-
"""
sluicewatch/scheduler.py
Polling as a cancellable task: start_polling() hands back a PollHandle,
the owner calls cancel() on teardown.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable


class PollHandle:
    def __init__(self, task: asyncio.Task, interval: float):
        self._task = task
        self.interval = interval

    @property
    def active(self) -> bool:
        return not self._task.done()

    def cancel(self) -> None:
        self._task.cancel()

    stop = cancel

    async def wait(self) -> None:
        await asyncio.gather(self._task, return_exceptions=True)


def start_polling(
    callback: Callable[[], Awaitable[object]],
    interval: float,
    *,
    name: str = "poller",
) -> PollHandle:
    """
    Call `callback` every `interval` seconds until cancelled.
    The first tick fires one interval after start. A failing tick is logged
    and the loop keeps going; the next tick is the recovery path.
    """
    if interval <= 0:
        raise ValueError(f"poll interval must be positive, got {interval}")

    async def _loop() -> None:
        print(f"[{name}] started, every {interval}s")
        try:
            while True:
                await asyncio.sleep(interval)
                try:
                    await callback()
                except Exception as e:
                    print(f"[{name}] tick error: {e!r}")
        except asyncio.CancelledError:
            print(f"[{name}] cancelled")
            raise
        finally:
            print(f"[{name}] finished")

    return PollHandle(asyncio.create_task(_loop()), interval)
