"""Gemeinsame Hilfsfunktionen für CSV-, Excel- und PDF-Export."""

from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from models.course import Course
from models.school_class import SchoolClass
from models.snapshot import Snapshot
from models.student import Student

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "delivered":   "B3FFB3",
    "missing":     "FFD4D4",
    "complete":    "C6EFCE",
    "partial":     "FFF2B3",
    "none":        "F5F5F5",
    "header":      "4472C4",
}


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Wandelt RRGGBB-String in (r, g, b)-Tupel um."""
    h = hex_color.lstrip("#")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def today_str() -> str:
    """Gibt das heutige Datum als DD.MM.YYYY zurück."""
    return date.today().strftime("%d.%m.%Y")


def export_filename(prefix: Optional[str], suffix: str) -> str:
    """Dateiname mit ISO-Datum, z.B. ``buecher_schueler_2025-09-01.csv``."""
    stem = prefix or "export"
    return f"{stem}_{date.today().isoformat()}.{suffix}"


def progress_color(delivered: int, required: int) -> str:
    if required == 0:
        return COLORS["none"]
    if delivered >= required:
        return COLORS["complete"]
    if delivered > 0:
        return COLORS["partial"]
    return COLORS["missing"]


# ─── Berichtszeilen ───────────────────────────────────────────────────────────

class ReportRow(BaseModel):
    """Eine Zeile des Abgabe-Berichts: (Schüler/in, Buch des Kurses)."""

    student: str
    class_name: str
    course: str
    book_isbn: str
    book_title: str
    delivered: bool

    def as_list(self) -> list[str]:
        return [
            self.student, self.class_name, self.course,
            self.book_isbn, self.book_title, "1" if self.delivered else "0",
        ]


def build_report_rows(snapshot: Snapshot) -> list[ReportRow]:
    """Eine Zeile pro (Schüler/in, Buch im Kurs ihrer/seiner Klasse).

    Schüler/innen ohne auflösbare Klasse oder Kurs werden übersprungen.
    Reihenfolge: Schüler/innen wie gespeichert, Bücher in Kursreihenfolge.
    """
    rows: list[ReportRow] = []
    for student in snapshot.students:
        cls = snapshot.class_by_id(student.class_id)
        course = snapshot.course_by_id(cls.course_id) if cls else None
        if cls is None or course is None:
            continue
        for book in course.books:
            rows.append(ReportRow(
                student=student.name,
                class_name=cls.name,
                course=course.name,
                book_isbn=book.isbn,
                book_title=book.title,
                delivered=student.has_delivered(book.isbn),
            ))
    return rows


def classes_with_course(snapshot: Snapshot) -> list[tuple[SchoolClass, Course, list[Student]]]:
    """Alle Klassen mit auflösbarem Kurs, sortiert nach Klassenname."""
    result = []
    for cls in sorted(snapshot.classes, key=lambda c: c.name):
        course = snapshot.course_by_id(cls.course_id)
        if course is None:
            continue
        students = sorted(snapshot.students_of_class(cls.id), key=lambda s: s.name)
        result.append((cls, course, students))
    return result


def export_json(snapshot: Snapshot, path: Path) -> Path:
    """Vollständige Datensicherung als JSON."""
    path = Path(path)
    snapshot.save_json(path)
    return path
