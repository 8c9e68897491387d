"""JSON-Import eines vollständigen Snapshots mit Validierung.

Ablauf:
  1. JSON parsen
  2. Pflicht-Sammlungen ``courses``, ``classes``, ``students`` vorhanden?
  3. Struktur der Einträge über die Pydantic-Modelle prüfen
  4. Integritäts-Check: doppelte IDs/ISBNs → Fehler,
     verwaiste Verweise → Warnung (Auswahl wird bereinigt)

Bei jedem Fehler wird ``SnapshotImportError`` ausgelöst – der aktuelle
Zustand bleibt dann unberührt, weil erst danach ``ImportState`` dispatcht wird.
"""

import json
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from models.snapshot import IntegrityReport, Snapshot

REQUIRED_COLLECTIONS = ("courses", "classes", "students")


class SnapshotImportError(Exception):
    """Fehler beim Import eines Snapshots."""


def parse_snapshot(text: str) -> tuple[Snapshot, IntegrityReport]:
    """Parst und prüft einen JSON-Text.

    Returns:
        (Snapshot mit bereinigter Auswahl, IntegrityReport)

    Raises:
        SnapshotImportError: Ungültiges JSON, fehlende Sammlungen,
            fehlerhafte Einträge oder doppelte IDs.
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotImportError(f"Kein gültiges JSON: {e}") from e

    if not isinstance(raw, dict):
        raise SnapshotImportError("Ungültiges Format: JSON-Objekt erwartet.")

    missing = [k for k in REQUIRED_COLLECTIONS if k not in raw]
    if missing:
        raise SnapshotImportError(
            f"Ungültiges Format: Sammlung(en) fehlen: {', '.join(missing)}."
        )
    for key in REQUIRED_COLLECTIONS:
        if not isinstance(raw[key], list):
            raise SnapshotImportError(f"Ungültiges Format: '{key}' muss eine Liste sein.")

    try:
        snapshot = Snapshot.model_validate(raw)
    except ValidationError as e:
        lines = [
            f"  {'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()[:10]
        ]
        raise SnapshotImportError(
            "Fehlerhafte Einträge:\n" + "\n".join(lines)
        ) from e

    report = snapshot.check_integrity()
    if not report.is_valid:
        raise SnapshotImportError(
            "Integritätsfehler:\n" + "\n".join(f"  • {e}" for e in report.errors)
        )

    return snapshot.without_dangling_selection(), report


def import_from_file(path: Union[str, Path]) -> tuple[Snapshot, IntegrityReport]:
    """Liest eine JSON-Datei und prüft sie wie ``parse_snapshot``."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise SnapshotImportError(f"Datei ist kein UTF-8-Text: {path}") from e
    except OSError as e:
        raise SnapshotImportError(f"Datei nicht lesbar: {path} ({e})") from e
    return parse_snapshot(text)
