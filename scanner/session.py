"""ScanSession – verbindet eine Decoder-Quelle mit Entprellung und Verarbeitung.

Eine Decoder-Quelle ruft für jede erfolgreiche Lesung den Callback mit dem
gelesenen Text auf. ``LineDecoderSource`` liest Codes zeilenweise aus einem
Textstrom (Tastatur-Scanner/Handscanner oder stdin).

Fehlerverhalten:
  - Quelle startet nicht (``CameraUnavailableError``) → Hinweis, Sitzung wird beendet
  - Licht nicht verfügbar (``TorchUnavailableError``) → Hinweis, Sitzung läuft weiter
"""

import logging
import threading
from typing import Callable, Optional, Protocol, TextIO

from scanner.debounce import ScanDebouncer
from scanner.notice import Notice

logger = logging.getLogger(__name__)

QUIT_WORDS = frozenset({"q", "quit", "exit", "ende"})


class CameraUnavailableError(Exception):
    """Decoder-Quelle konnte nicht gestartet werden (Gerät/Berechtigung)."""


class TorchUnavailableError(Exception):
    """Licht/Taschenlampe wird von der Quelle nicht unterstützt."""


class DecoderSource(Protocol):
    def start(self, on_decode: Callable[[str], None]) -> None: ...
    def stop(self) -> None: ...
    def toggle_torch(self) -> bool: ...


class LineDecoderSource:
    """Liest einen Code pro Zeile, bis EOF, ``stop()`` oder ein Ende-Wort."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream
        self._stopped = threading.Event()

    def start(self, on_decode: Callable[[str], None]) -> None:
        if self.stream is None or self.stream.closed:
            raise CameraUnavailableError("Eingabestrom nicht verfügbar.")
        self._stopped.clear()
        while not self._stopped.is_set():
            line = self.stream.readline()
            if not line:
                break
            code = line.strip()
            if code.lower() in QUIT_WORDS:
                break
            if code:
                on_decode(code)
        self._stopped.set()

    def stop(self) -> None:
        self._stopped.set()

    def toggle_torch(self) -> bool:
        raise TorchUnavailableError("Licht ist bei Texteingabe nicht verfügbar.")


class ScanSession:
    """Eine Scan-Sitzung: Quelle → Entprellung → ``on_code``.

    Nach ``close()`` werden keine weiteren Codes mehr weitergereicht.
    """

    def __init__(self, source: DecoderSource, on_code: Callable[[str], None],
                 debouncer: Optional[ScanDebouncer] = None,
                 on_notice: Optional[Callable[[Notice], None]] = None) -> None:
        self.source = source
        self.on_code = on_code
        self.debouncer = debouncer or ScanDebouncer()
        self.on_notice = on_notice
        self.torch_on = False
        self.accepted = 0
        self.suppressed = 0
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed

    def _notify(self, notice: Notice) -> None:
        if self.on_notice is not None:
            self.on_notice(notice)

    def _handle(self, code: str) -> None:
        if self._closed:
            return
        code = code.strip()
        if not self.debouncer.accept(code):
            self.suppressed += 1
            logger.debug(f"Doppelte Lesung unterdrückt: {code}")
            return
        self.accepted += 1
        self.on_code(code)

    def start(self) -> bool:
        """Startet die Quelle (blockiert bei zeilenweiser Eingabe). False bei Gerätefehler."""
        if self._closed:
            return False
        try:
            self.source.start(self._handle)
        except CameraUnavailableError as e:
            logger.error(f"Decoder-Quelle nicht verfügbar: {e}")
            self._notify(Notice.error(f"Kamera/Scanner nicht verfügbar: {e}"))
            self.close()
            return False
        return True

    def toggle_torch(self) -> bool:
        """Schaltet das Licht um. Fehler → Hinweis, Sitzung bleibt aktiv."""
        try:
            self.torch_on = self.source.toggle_torch()
        except TorchUnavailableError as e:
            self._notify(Notice.error(f"Licht nicht verfügbar: {e}"))
        return self.torch_on

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.source.stop()
        logger.info(f"Scan-Sitzung beendet ({self.accepted} angenommen, "
                    f"{self.suppressed} unterdrückt).")

    def __enter__(self) -> "ScanSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
