"""EntityStore – hält den aktuellen Snapshot und ist der einzige Schreibzugang.

Jede Änderung läuft über ``dispatch()`` → ``reduce()``. Nach jeder
angenommenen Änderung wird der Snapshot gespeichert (falls ein Speicher
angegeben ist) und alle Listener werden benachrichtigt.

Hintergrund-Ergebnisse (z.B. der Titelsuche) werden ebenfalls als Aktion
dispatcht; ein Lock serialisiert alle Übergänge.
"""

import logging
import threading
from typing import TYPE_CHECKING, Callable, Optional

from models.snapshot import Snapshot
from store.reducer import reduce

if TYPE_CHECKING:
    from data.storage import SnapshotStorage

logger = logging.getLogger(__name__)

Listener = Callable[[Snapshot, object], None]


class EntityStore:
    """Zustandscontainer mit genau einem Mutationspfad."""

    def __init__(self, snapshot: Optional[Snapshot] = None,
                 storage: Optional["SnapshotStorage"] = None) -> None:
        self._snapshot = snapshot if snapshot is not None else Snapshot.empty()
        self._storage = storage
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()

    @classmethod
    def from_storage(cls, storage: "SnapshotStorage") -> "EntityStore":
        """Lädt den gespeicherten Stand (fehlend/defekt → leerer Snapshot)."""
        return cls(storage.load(), storage)

    @property
    def snapshot(self) -> Snapshot:
        """Aktueller (unveränderlicher) Snapshot."""
        return self._snapshot

    def dispatch(self, action) -> bool:
        """Wendet eine Aktion an. Gibt True zurück, wenn sich der Zustand geändert hat.

        Fehler des Reducers (``IntegrityError``) werden durchgereicht; der
        Snapshot bleibt dann unverändert.
        """
        with self._lock:
            before = self._snapshot
            after = reduce(before, action)
            if after is before or after == before:
                logger.debug(f"Aktion ohne Wirkung: {type(action).__name__}")
                return False
            self._snapshot = after
            if self._storage is not None:
                self._storage.save(after)
            listeners = list(self._listeners)

        logger.info(f"Aktion angewendet: {type(action).__name__}")
        for listener in listeners:
            listener(after, action)
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Registriert einen Listener; gibt eine Abmelde-Funktion zurück."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def __repr__(self) -> str:
        s = self._snapshot
        return (f"EntityStore({len(s.courses)} Kurse, {len(s.classes)} Klassen, "
                f"{len(s.students)} Schüler/innen)")
