"""Gemeinsamer Renderer für die Terminal-Anzeige (Rich).

Wird von ``status`` und ``course show`` verwendet.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models.course import Course
    from models.snapshot import Snapshot
    from models.student import Student


def render_checklist_rows(student: "Student", course: "Course") -> list[list[str]]:
    """Checkliste einer Schülerin / eines Schülers.

    Jede Zeile: [Nr., Status, ISBN, Titel]
    """
    rows: list[list[str]] = []
    for i, book in enumerate(course.books, 1):
        mark = "[green]✓[/green]" if student.has_delivered(book.isbn) else "[dim]○[/dim]"
        rows.append([str(i), mark, book.isbn, book.title])
    return rows


def render_class_matrix_rows(class_id: str, snapshot: "Snapshot") -> tuple[list[str], list[list[str]]]:
    """Matrix Schüler/innen × Bücher einer Klasse.

    Returns:
        (Kopfzeile, Zeilen). Kopf: ["Schüler/in", Buch1, …, "Stand"].
    """
    course = snapshot.course_of_class(class_id)
    if course is None:
        return [], []

    header = ["Schüler/in"] + [b.title for b in course.books] + ["Stand"]
    rows: list[list[str]] = []
    for student in sorted(snapshot.students_of_class(class_id), key=lambda s: s.name):
        cells = [student.name]
        for book in course.books:
            cells.append("✓" if student.has_delivered(book.isbn) else "—")
        p = snapshot.progress(student)
        cells.append(f"{p.delivered}/{p.required}")
        rows.append(cells)
    return header, rows


def render_course_rows(course: "Course") -> list[list[str]]:
    """Bücherliste eines Kurses: [Nr., ISBN, Titel]."""
    return [[str(i), b.isbn, b.title] for i, b in enumerate(course.books, 1)]
