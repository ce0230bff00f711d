# -*- coding: utf-8 -*-
"""
sluicewatch/errors.py
Failure taxonomy of the sync core.
- NetworkError / HttpError / ShapeError come out of the fetcher
- CacheCorruption never leaves storage.read(); it degrades to a cold load
"""

from __future__ import annotations

from typing import Optional


class SyncError(Exception):
    """Base class for every classified sync failure."""
    kind = "sync"


class NetworkError(SyncError):
    """Transport failure or timeout."""
    kind = "network"


class HttpError(SyncError):
    """Non-2xx response."""
    kind = "http"

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        super().__init__(message or f"HTTP error! status: {status}")


class ShapeError(SyncError):
    """Body parsed but the envelope or payload is not what we expect."""
    kind = "shape"


class CacheCorruption(SyncError):
    kind = "cache"
