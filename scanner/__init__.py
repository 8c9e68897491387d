"""Scan-Verarbeitung: Entprellung, Auflösung, Titelsuche, Decoder-Quellen."""

from .debounce import ScanDebouncer, DEFAULT_WINDOW_MS
from .locator import LocatorLoadError, load_first, sanitize_locator
from .lookup import LookupRunner, PendingLookup, TitleLookup
from .notice import Notice, NoticeLevel
from .resolver import CatalogOutcome, ManualEntryRequest, ScanResolver
from .session import (
    CameraUnavailableError,
    LineDecoderSource,
    ScanSession,
    TorchUnavailableError,
)

__all__ = [
    "ScanDebouncer",
    "DEFAULT_WINDOW_MS",
    "LocatorLoadError",
    "load_first",
    "sanitize_locator",
    "LookupRunner",
    "PendingLookup",
    "TitleLookup",
    "Notice",
    "NoticeLevel",
    "CatalogOutcome",
    "ManualEntryRequest",
    "ScanResolver",
    "CameraUnavailableError",
    "LineDecoderSource",
    "ScanSession",
    "TorchUnavailableError",
]
