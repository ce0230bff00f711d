# sluicewatch/main.py
# Wires config -> fetcher + cache -> reconciler -> view controller,
# and hosts a controller headlessly (prints each page change).

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Optional, Tuple

import yaml

from sluicewatch.fetcher import OccurrenceFetcher
from sluicewatch.reconciler import Reconciler
from sluicewatch.state import StalePolicy
from sluicewatch.storage import SqliteCacheStore
from sluicewatch.view import ViewController, ViewSnapshot, display_row

ROOT = Path(__file__).resolve().parents[1]

DEFAULT_CFG = {
    "sync": {
        "base_url": "http://localhost:8080/api/v1",
        "occurrences_path": "/ocorrencias/historico",
        "resolve_path": "/ocorrencias/{id}/resolver",
        # fetch enough for the local filters to work on
        "limit": 1000,
        "timeout_sec": 15,
        "poll_interval_sec": 30,
        "page_size": 10,
        "stale_policy": "sequence",
    },
    "cache": {
        "db_path": "sluicewatch.db",
        "slot": "occurrences",
    },
    "display_timezone": "America/Sao_Paulo",
    # 0 or less = run until cancelled
    "run_seconds": 0,
}


def load_cfg(cfg_path: Optional[Path] = None) -> dict:
    """ops/config.yml is optional; missing or broken falls back to defaults."""
    cfg_path = Path(cfg_path) if cfg_path else ROOT / "ops" / "config.yml"
    out = {k: (dict(v) if isinstance(v, dict) else v) for k, v in DEFAULT_CFG.items()}
    if cfg_path.exists():
        try:
            data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
            for key, value in data.items():
                # one level deep per section, nothing cleverer
                if isinstance(out.get(key), dict) and isinstance(value, dict):
                    out[key] = {**out[key], **value}
                else:
                    out[key] = value
        except (OSError, yaml.YAMLError, AttributeError) as e:
            print(f"[main] failed to read {cfg_path}, using defaults. err={e}")

    if os.environ.get("SLUICEWATCH_API_BASE"):
        out["sync"]["base_url"] = os.environ["SLUICEWATCH_API_BASE"]
    if os.environ.get("SLUICEWATCH_CACHE_DB"):
        out["cache"]["db_path"] = os.environ["SLUICEWATCH_CACHE_DB"]
    return out


def build_controller(cfg: dict) -> Tuple[ViewController, OccurrenceFetcher]:
    sync = cfg["sync"]
    cache_cfg = cfg["cache"]

    fetcher = OccurrenceFetcher(
        sync["base_url"],
        occurrences_path=sync["occurrences_path"],
        resolve_path=sync["resolve_path"],
        params={"limite": int(sync["limit"])} if sync.get("limit") else None,
        timeout=float(sync["timeout_sec"]),
    )
    db_path = Path(cache_cfg["db_path"])
    if not db_path.is_absolute():
        db_path = ROOT / db_path
    cache = SqliteCacheStore(db_path, slot=cache_cfg["slot"])

    reconciler = Reconciler(fetcher, cache, stale_policy=StalePolicy(sync["stale_policy"]))
    controller = ViewController(
        reconciler,
        page_size=int(sync["page_size"]),
        poll_interval=float(sync["poll_interval_sec"]),
    )
    return controller, fetcher


def print_snapshot(snap: ViewSnapshot, tz_name: str) -> None:
    flags = []
    if snap.refreshing:
        flags.append("refreshing")
    if snap.transient_error:
        flags.append(f"stale: {snap.transient_error}")
    print(
        f"[view] {snap.phase.value} page {snap.page}/{snap.total_pages} "
        f"({snap.filtered_count}/{snap.total_count}) {' '.join(flags)}"
    )
    if snap.error:
        print(f"[view] error: {snap.error}")
    for occ in snap.rows:
        row = display_row(occ, tz_name)
        print(f"  {row['started']}  {row['sector']:<16} {row['status']:<12} {row['code']:<10} {row['description']}")


async def main(run_seconds: Optional[int] = None):
    cfg = load_cfg()
    if run_seconds is None:
        run_seconds = int(cfg.get("run_seconds") or 0)
    tz_name = cfg["display_timezone"]

    controller, fetcher = build_controller(cfg)
    controller.subscribe(lambda snap: print_snapshot(snap, tz_name))

    print("[main] mounting view…")
    controller.mount()
    try:
        if run_seconds and run_seconds > 0:
            await asyncio.sleep(run_seconds)
        else:
            stop = asyncio.Event()
            await stop.wait()
    except asyncio.CancelledError:
        print("[main] cancelled")
        raise
    finally:
        await controller.unmount()
        await fetcher.close()
        print("[main] finished")


if __name__ == "__main__":
    asyncio.run(main())
