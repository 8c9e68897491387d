"""Bereinigung und Fallback-Laden von Ressourcen-Adressen der Decoder-Bibliothek.

Typischer Fehler aus Build-Werkzeugen: Die Basis-URL wird doppelt vorangestellt
und ein Modifikator wie ``/+esm`` angehängt::

    https://cdn.example/npm/https://cdn.example/npm/lib@1/index.js/+esm
    → https://cdn.example/npm/lib@1/index.js
"""

import logging
import re
from typing import Callable, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

MODIFIER_SUFFIXES: tuple[str, ...] = ("/+esm",)

# Kürzestes Präfix "schema://…/", das unmittelbar noch einmal folgt
_DUPLICATED_BASE = re.compile(r"^([a-z][a-z0-9+.-]*://\S+?/)\1+", re.IGNORECASE)


class LocatorLoadError(Exception):
    """Keine der Adressen ließ sich laden."""


def sanitize_locator(url: Optional[str], default: Optional[str] = None,
                     suffixes: tuple[str, ...] = MODIFIER_SUFFIXES) -> Optional[str]:
    """Entfernt doppelte Basis-Präfixe und angehängte Modifikatoren.

    Saubere Adressen werden unverändert zurückgegeben. Leere Eingabe → ``default``.
    """
    if not url:
        return default
    out = str(url).strip()
    out = _DUPLICATED_BASE.sub(r"\1", out)
    stripped = True
    while stripped:
        stripped = False
        for suffix in suffixes:
            if out.endswith(suffix) and len(out) > len(suffix):
                out = out[: -len(suffix)]
                stripped = True
    return out


def load_first(candidates: Iterable[str], loader: Callable[[str], T]) -> tuple[str, T]:
    """Probiert die (bereinigten) Adressen der Reihe nach.

    Returns:
        (verwendete Adresse, Ergebnis des Loaders)

    Raises:
        LocatorLoadError: Alle Adressen schlugen fehl; ``__cause__`` ist der letzte Fehler.
    """
    last_error: Optional[Exception] = None
    tried: list[str] = []
    for candidate in candidates:
        url = sanitize_locator(candidate)
        if not url or url in tried:
            continue
        tried.append(url)
        try:
            result = loader(url)
        except Exception as e:
            logger.warning(f"Laden fehlgeschlagen: {url} ({e})")
            last_error = e
            continue
        logger.info(f"Geladen: {url}")
        return url, result

    if last_error is None:
        raise LocatorLoadError("Keine Adresse angegeben.")
    raise LocatorLoadError(
        f"Keine der {len(tried)} Adressen ließ sich laden: {last_error}"
    ) from last_error
