"""Snapshot: Vollständiger Datenstand (Kurse, Klassen, Schüler, Auswahl) + Integritäts-Check."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict

from models.course import Course
from models.school_class import SchoolClass
from models.selection import Selection
from models.student import Student


class IntegrityReport(BaseModel):
    """Ergebnis des Integritäts-Checks eines Snapshots."""

    is_valid: bool
    errors: list[str]      # Kritisch (Snapshot nicht verwendbar)
    warnings: list[str]    # Hinweise (verwaiste Verweise)

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        if self.is_valid:
            status = "[bold green]✓ GÜLTIG[/bold green]"
        else:
            status = "[bold red]✗ UNGÜLTIG[/bold red]"

        lines = [status]
        if self.errors:
            lines.append("\n[red bold]Fehler:[/red bold]")
            for e in self.errors:
                lines.append(f"  [red]• {e}[/red]")
        if self.warnings:
            lines.append("\n[yellow bold]Warnungen:[/yellow bold]")
            for w in self.warnings:
                lines.append(f"  [yellow]• {w}[/yellow]")
        if not self.errors and not self.warnings:
            lines.append("[dim]Keine Probleme gefunden.[/dim]")

        console.print(Panel("\n".join(lines), title="Integritäts-Check", border_style="cyan"))


class StudentProgress(BaseModel):
    """Abgabestand einer Schülerin / eines Schülers bezogen auf den Kurs der Klasse."""

    delivered: int
    required: int

    @property
    def is_complete(self) -> bool:
        return self.required > 0 and self.delivered >= self.required


class Snapshot(BaseModel):
    """Unveränderlicher Gesamtzustand. Einheit für Speichern, Import und Reset."""

    model_config = ConfigDict(frozen=True)

    courses: tuple[Course, ...] = ()
    classes: tuple[SchoolClass, ...] = ()
    students: tuple[Student, ...] = ()
    selection: Selection = Selection()

    @classmethod
    def empty(cls) -> "Snapshot":
        """Leere Sammlungen, keine Auswahl."""
        return cls()

    # ─── Abfragen ───

    def course_by_id(self, course_id: Optional[str]) -> Optional[Course]:
        return next((c for c in self.courses if c.id == course_id), None)

    def class_by_id(self, class_id: Optional[str]) -> Optional[SchoolClass]:
        return next((c for c in self.classes if c.id == class_id), None)

    def student_by_id(self, student_id: Optional[str]) -> Optional[Student]:
        return next((s for s in self.students if s.id == student_id), None)

    def classes_of_course(self, course_id: str) -> list[SchoolClass]:
        return [c for c in self.classes if c.course_id == course_id]

    def students_of_class(self, class_id: str) -> list[Student]:
        return [s for s in self.students if s.class_id == class_id]

    def course_of_class(self, class_id: Optional[str]) -> Optional[Course]:
        cls = self.class_by_id(class_id)
        return self.course_by_id(cls.course_id) if cls else None

    def course_of_student(self, student: Student) -> Optional[Course]:
        return self.course_of_class(student.class_id)

    @property
    def selected_course(self) -> Optional[Course]:
        return self.course_by_id(self.selection.course_id)

    @property
    def selected_class(self) -> Optional[SchoolClass]:
        return self.class_by_id(self.selection.class_id)

    @property
    def selected_student(self) -> Optional[Student]:
        """Ausgewählte/r Schüler/in, nur wenn sie/er zur ausgewählten Klasse gehört."""
        student = self.student_by_id(self.selection.student_id)
        if student is None or student.class_id != self.selection.class_id:
            return None
        return student

    def progress(self, student: Student) -> StudentProgress:
        """Wie viele Bücher des Kurses die/der Schüler/in schon abgegeben hat."""
        course = self.course_of_student(student)
        if course is None:
            return StudentProgress(delivered=0, required=0)
        delivered = sum(1 for b in course.books if student.has_delivered(b.isbn))
        return StudentProgress(delivered=delivered, required=len(course.books))

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Datenstand."""
        total_books = sum(len(c.books) for c in self.courses)
        complete = sum(1 for s in self.students if self.progress(s).is_complete)
        lines = [
            f"Kurse: {len(self.courses)} ({total_books} Pflichtbücher)",
            f"Klassen: {len(self.classes)}",
            f"Schüler/innen: {len(self.students)}",
            f"Vollständig abgegeben: {complete}/{len(self.students)}" if self.students else "",
        ]
        return "\n".join(l for l in lines if l)

    # ─── Integritäts-Check ───

    def check_integrity(self) -> IntegrityReport:
        """Prüft IDs und Verweise.

        Prüfungen:
        1. IDs je Sammlung eindeutig (Fehler)
        2. ISBNs je Kurs eindeutig (Fehler)
        3. Klasse → Kurs, Schüler/in → Klasse auflösbar (Warnung)
        4. Auswahl zeigt auf existierende Einträge (Warnung)
        """
        errors: list[str] = []
        warnings: list[str] = []

        for label, items in (
            ("Kurs", self.courses),
            ("Klasse", self.classes),
            ("Schüler/in", self.students),
        ):
            seen: set[str] = set()
            for item in items:
                if item.id in seen:
                    errors.append(f"{label}-ID '{item.id}' ist mehrfach vorhanden.")
                seen.add(item.id)

        for course in self.courses:
            isbns = course.isbns
            dupes = sorted({i for i in isbns if isbns.count(i) > 1})
            for isbn in dupes:
                errors.append(f"Kurs '{course.name}': ISBN {isbn} ist mehrfach gelistet.")

        course_ids = {c.id for c in self.courses}
        class_ids = {c.id for c in self.classes}
        for cls in self.classes:
            if cls.course_id not in course_ids:
                warnings.append(
                    f"Klasse '{cls.name}' verweist auf unbekannten Kurs '{cls.course_id}'."
                )
        for student in self.students:
            if student.class_id not in class_ids:
                warnings.append(
                    f"Schüler/in '{student.name}' verweist auf unbekannte Klasse '{student.class_id}'."
                )

        sel = self.selection
        if sel.course_id is not None and sel.course_id not in course_ids:
            warnings.append(f"Auswahl: Kurs '{sel.course_id}' existiert nicht.")
        if sel.class_id is not None and sel.class_id not in class_ids:
            warnings.append(f"Auswahl: Klasse '{sel.class_id}' existiert nicht.")
        if sel.student_id is not None and self.student_by_id(sel.student_id) is None:
            warnings.append(f"Auswahl: Schüler/in '{sel.student_id}' existiert nicht.")

        return IntegrityReport(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
        )

    def without_dangling_selection(self) -> "Snapshot":
        """Entfernt Auswahl-Einträge, die auf nicht existierende Einträge zeigen."""
        sel = self.selection
        course_id = sel.course_id if self.course_by_id(sel.course_id) else None
        class_id = sel.class_id if self.class_by_id(sel.class_id) else None
        student_id = sel.student_id if self.student_by_id(sel.student_id) else None
        fixed = Selection(course_id=course_id, class_id=class_id, student_id=student_id)
        if fixed == sel:
            return self
        return self.model_copy(update={"selection": fixed})

    # ─── Persistenz ────────────────────────────────────────────────────────

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    def save_json(self, path: Path) -> None:
        """Speichert den kompletten Snapshot als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_json())

    @classmethod
    def load_json(cls, path: Path) -> "Snapshot":
        """Lädt einen Snapshot aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())
