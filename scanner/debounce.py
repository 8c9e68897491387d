"""Entprellung aufeinanderfolgender Scans.

Eine Kamera liefert für einen ruhig gehaltenen Barcode viele Lesungen pro
Sekunde. Angenommen wird ein Code nur, wenn er sich vom zuletzt angenommenen
unterscheidet oder seit dessen Annahme mindestens ``window_ms`` vergangen sind.
"""

import time
from typing import Callable, Optional

DEFAULT_WINDOW_MS = 2500


class ScanDebouncer:
    """Merkt sich (Code, Zeitpunkt) der letzten angenommenen Lesung."""

    def __init__(self, window_ms: int = DEFAULT_WINDOW_MS,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.window_ms = window_ms
        self._clock = clock   # Sekunden, monoton
        self._last_code: Optional[str] = None
        self._last_ts: float = 0.0

    def accept(self, code: str) -> bool:
        """True, wenn die Lesung weiterverarbeitet werden soll."""
        if not code:
            return False
        now = self._clock()
        if code == self._last_code and (now - self._last_ts) * 1000 < self.window_ms:
            return False
        self._last_code = code
        self._last_ts = now
        return True

    def reset(self) -> None:
        self._last_code = None
        self._last_ts = 0.0

    @property
    def last_code(self) -> Optional[str]:
        return self._last_code
