"""ScanResolver – übersetzt einen gelesenen Barcode in eine Aktion.

Zwei Abläufe:

Abgabe-Kontrolle (``resolve_delivery``)
    Braucht ausgewählte/n Schüler/in und den Kurs der ausgewählten Klasse,
    sonst wird der Scan ignoriert. Treffer in der Bücherliste →
    ``MarkDelivered`` + Erfolgsmeldung mit Titel; kein Treffer → Fehlermeldung,
    keine Aktion.

Bücherliste aufbauen (``resolve_catalog``)
    Braucht einen ausgewählten Kurs. Titelsuche (ein Versuch); gefunden →
    Buch wird hinzugefügt; nicht gefunden → ``ManualEntryRequest`` an den
    Aufrufer, der später ``confirm_manual_entry`` aufruft.
"""

import logging
from typing import Callable, Optional, Union

from pydantic import BaseModel, ConfigDict

from models.book import placeholder_title
from models.course import Course
from models.student import Student
from scanner.lookup import LookupRunner, PendingLookup, TitleLookup
from scanner.notice import Notice
from store.actions import AddBookToCourse, LookupFailed, LookupSucceeded, MarkDelivered

logger = logging.getLogger(__name__)

MSG_NOT_IN_COURSE = "Buch nicht in der Liste dieses Kurses."


class ManualEntryRequest(BaseModel):
    """Kein Titel gefunden – Aufrufer soll den Titel manuell erfragen."""

    model_config = ConfigDict(frozen=True)

    course_id: str
    isbn: str


class CatalogOutcome(BaseModel):
    """Ergebnis eines Scans im Ablauf "Bücherliste aufbauen"."""

    notice: Optional[Notice] = None
    manual_entry: Optional[ManualEntryRequest] = None


def delivery_action(barcode: str, student: Optional[Student],
                    course: Optional[Course]) -> tuple[Optional[MarkDelivered], Optional[Notice]]:
    """Reine Entscheidungslogik der Abgabe-Kontrolle.

    Returns:
        (Aktion oder None, Hinweis oder None). (None, None) = Scan ignoriert.
    """
    if student is None or course is None:
        return None, None
    book = course.find_book(barcode)
    if book is None:
        return None, Notice.error(MSG_NOT_IN_COURSE)
    action = MarkDelivered(student_id=student.id, isbn=barcode)
    return action, Notice.success(f'"{book.title}" als abgegeben markiert.')


def catalog_outcome(action, applied: bool = True) -> CatalogOutcome:
    """Übersetzt das Ergebnis einer Titelsuche in Hinweis bzw. Eingabe-Anfrage.

    ``applied`` ist der Rückgabewert von ``dispatch``; False bei
    ``LookupSucceeded`` heißt, der Kurs fehlt inzwischen oder das Buch ist
    schon gelistet.
    """
    if isinstance(action, LookupSucceeded):
        if not applied:
            return CatalogOutcome(
                notice=Notice.error(f"Buch {action.isbn} konnte nicht hinzugefügt werden.")
            )
        return CatalogOutcome(notice=Notice.success(f'Buch "{action.title}" hinzugefügt.'))
    if isinstance(action, LookupFailed):
        return CatalogOutcome(
            manual_entry=ManualEntryRequest(course_id=action.course_id, isbn=action.isbn)
        )
    return CatalogOutcome()


class ScanResolver:
    """Verbindet gelesene Barcodes mit dem EntityStore."""

    def __init__(self, store, lookup: Optional[TitleLookup] = None) -> None:
        self.store = store
        self.lookup = lookup

    # ─── Abgabe-Kontrolle ───

    def resolve_delivery(self, barcode: str) -> Optional[Notice]:
        snapshot = self.store.snapshot
        student = snapshot.selected_student
        course = snapshot.course_of_class(snapshot.selection.class_id)
        action, notice = delivery_action(barcode, student, course)
        if action is not None:
            self.store.dispatch(action)
        elif notice is None:
            logger.debug(f"Scan {barcode} ignoriert: keine Schüler-/Kursauswahl.")
        return notice

    # ─── Bücherliste aufbauen ───

    def _catalog_precheck(self, barcode: str):
        """(Kurs, vorzeitiges Ergebnis). Kurs None → Scan ignorieren."""
        course = self.store.snapshot.selected_course
        if course is None:
            logger.debug(f"Scan {barcode} ignoriert: kein Kurs ausgewählt.")
            return None, None
        existing = course.find_book(barcode)
        if existing is not None:
            return course, CatalogOutcome(
                notice=Notice.success(f'"{existing.title}" ist bereits in der Liste.')
            )
        return course, None

    def resolve_catalog(self, barcode: str) -> Optional[CatalogOutcome]:
        """Synchrone Variante: sucht den Titel und dispatcht das Ergebnis.

        Returns:
            None, wenn kein Kurs ausgewählt ist (Scan ignoriert).
        """
        course, early = self._catalog_precheck(barcode)
        if course is None or early is not None:
            return early

        title = self.lookup.find_title(barcode) if self.lookup is not None else None
        if title:
            action = LookupSucceeded(course_id=course.id, isbn=barcode, title=title)
        else:
            action = LookupFailed(course_id=course.id, isbn=barcode)
        return catalog_outcome(action, self.store.dispatch(action))

    def confirm_manual_entry(self, request: ManualEntryRequest, title: str) -> Notice:
        """Fügt das Buch mit manuell bestätigtem Titel hinzu (leer → Ersatztitel)."""
        title = (title or "").strip() or placeholder_title(request.isbn)
        changed = self.store.dispatch(
            AddBookToCourse(course_id=request.course_id, isbn=request.isbn, title=title)
        )
        if not changed:
            return Notice.error(f"Buch {request.isbn} konnte nicht hinzugefügt werden.")
        return Notice.success(f'Buch "{title}" hinzugefügt.')

    def start_catalog_lookup(self, barcode: str, runner: LookupRunner,
                             on_done: Optional[Callable[[object], None]] = None
                             ) -> Union[None, CatalogOutcome, PendingLookup]:
        """Asynchrone Variante über ``LookupRunner``.

        Returns:
            None (ignoriert), CatalogOutcome (Buch schon gelistet) oder die
            laufende Suche; deren Ergebnis-Aktion wird vom Runner dispatcht.
        """
        course, early = self._catalog_precheck(barcode)
        if course is None or early is not None:
            return early
        return runner.submit(course.id, barcode, on_done=on_done)
