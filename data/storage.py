"""SnapshotStorage – der eine persistente Datenblock (JSON-Datei)."""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from models.snapshot import Snapshot

logger = logging.getLogger(__name__)


class SnapshotStorage:
    """Liest und schreibt den kompletten Snapshot als JSON.

    Fehlende oder defekte Dateien ergeben beim Laden einen leeren Snapshot.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Snapshot:
        """Lädt den gespeicherten Snapshot; fehlend/defekt → leer."""
        if not self.path.exists():
            logger.info(f"Kein gespeicherter Stand unter {self.path} – starte leer.")
            return Snapshot.empty()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, dict) or not all(
                k in raw for k in ("courses", "classes", "students")
            ):
                logger.warning(f"Gespeicherter Stand unvollständig: {self.path} – starte leer.")
                return Snapshot.empty()
            return Snapshot.model_validate(raw)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Gespeicherter Stand nicht lesbar ({self.path}): {e} – starte leer.")
            return Snapshot.empty()

    def save(self, snapshot: Snapshot) -> None:
        """Schreibt den Snapshot (über temporäre Datei, dann Umbenennen)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(snapshot.to_json())
        tmp.replace(self.path)

    def __repr__(self) -> str:
        return f"SnapshotStorage({self.path})"
