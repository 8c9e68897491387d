"""Titelsuche per ISBN (Google Books API) und Hintergrund-Ausführung.

Die Suche ist "best effort": genau ein Versuch mit Timeout, jeder Fehler oder
ein leeres Ergebnis ergibt ``None``.

``LookupRunner`` führt Suchen in einem Thread-Pool aus und liefert das
Ergebnis als ``LookupSucceeded``/``LookupFailed`` an den EntityStore. Eine
abgebrochene Suche darf zu Ende laufen, ihr Ergebnis wird aber verworfen.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

import requests

from store.actions import LookupFailed, LookupSucceeded

logger = logging.getLogger(__name__)

GOOGLE_BOOKS_API = "https://www.googleapis.com/books/v1/volumes"
DEFAULT_TIMEOUT_SECONDS = 8.0


class TitleLookup:
    """Sucht den Titel eines Buches anhand der ISBN."""

    def __init__(self, endpoint: str = GOOGLE_BOOKS_API,
                 timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.endpoint = endpoint
        self.timeout = timeout

    def find_title(self, isbn: str) -> Optional[str]:
        """Gibt den Titel des ersten Treffers zurück oder None."""
        isbn = (isbn or "").strip()
        if not isbn:
            return None
        try:
            response = requests.get(
                self.endpoint, params={"q": f"isbn:{isbn}"}, timeout=self.timeout
            )
            if response.status_code != 200:
                logger.warning(f"Titelsuche {isbn}: HTTP {response.status_code}")
                return None
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Titelsuche {isbn} fehlgeschlagen: {e}")
            return None
        return _extract_title(data)


def _extract_title(data) -> Optional[str]:
    """Titel aus der Google-Books-Antwort (erstes Volume)."""
    if not isinstance(data, dict) or not data.get("totalItems"):
        return None
    items = data.get("items") or []
    if not items:
        return None
    title = (items[0].get("volumeInfo") or {}).get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()
    return None


class PendingLookup:
    """Eine laufende Titelsuche. ``cancel()`` verwirft das spätere Ergebnis."""

    def __init__(self, course_id: str, isbn: str) -> None:
        self.course_id = course_id
        self.isbn = isbn
        self._cancelled = threading.Event()
        self._future: Optional[Future] = None
        # Rückgabewert von dispatch, sobald das Ergebnis angewendet wurde
        self.applied: Optional[bool] = None

    def cancel(self) -> None:
        self._cancelled.set()
        if self._future is not None:
            self._future.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def result(self, timeout: Optional[float] = None):
        """Wartet auf die Aktion (LookupSucceeded/LookupFailed) oder None bei Abbruch."""
        if self._future is None:
            return None
        return self._future.result(timeout=timeout)

    def __repr__(self) -> str:
        state = "abgebrochen" if self.cancelled else ("fertig" if self.done() else "läuft")
        return f"PendingLookup({self.isbn}, {state})"


class LookupRunner:
    """Führt Titelsuchen im Hintergrund aus und dispatcht die Ergebnisse."""

    def __init__(self, lookup: TitleLookup, store, max_workers: int = 2) -> None:
        self.lookup = lookup
        self.store = store
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix="titelsuche")
        self._pending: set[PendingLookup] = set()
        self._lock = threading.Lock()

    def submit(self, course_id: str, isbn: str,
               on_done: Optional[Callable[[object], None]] = None) -> PendingLookup:
        """Startet eine Suche. ``on_done`` erhält die dispatchte Aktion."""
        pending = PendingLookup(course_id, isbn)
        with self._lock:
            self._pending.add(pending)
        pending._future = self._executor.submit(self._run, pending, on_done)
        return pending

    def _run(self, pending: PendingLookup, on_done):
        try:
            title = self.lookup.find_title(pending.isbn)
        finally:
            with self._lock:
                self._pending.discard(pending)

        if pending.cancelled:
            logger.info(f"Titelsuche {pending.isbn} abgebrochen – Ergebnis verworfen.")
            return None

        if title:
            action = LookupSucceeded(course_id=pending.course_id, isbn=pending.isbn, title=title)
        else:
            action = LookupFailed(course_id=pending.course_id, isbn=pending.isbn)
        pending.applied = self.store.dispatch(action)
        if on_done is not None:
            on_done(action)
        return action

    def cancel_all(self) -> None:
        with self._lock:
            pending = list(self._pending)
        for p in pending:
            p.cancel()

    def close(self) -> None:
        """Bricht offene Suchen ab und beendet den Pool (ohne zu warten)."""
        self.cancel_all()
        self._executor.shutdown(wait=False)
