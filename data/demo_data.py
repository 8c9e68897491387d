"""Demo-Daten für die Bücherausgabe.

Erzeugt Kurse mit Pflichtbüchern, Klassen und Schüler/innen als Folge von
Aktionen, die über den normalen Reducer-Pfad angewendet werden. Ein Teil der
Bücher ist bereits als abgegeben markiert, damit Berichte etwas zeigen.
"""

import random

from store.actions import AddBookToCourse, AddClass, AddCourse, AddStudent, MarkDelivered, SelectCourse

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_FIRST_NAMES = [
    "Anna", "Ben", "Clara", "David", "Emma", "Finn", "Greta", "Hannah",
    "Ilias", "Jonas", "Lea", "Luis", "Mara", "Mia", "Noah", "Paul",
    "Sophie", "Tim", "Yusuf", "Zoe",
]

_LAST_NAMES = [
    "Müller", "Schmidt", "Schneider", "Fischer", "Weber", "Meyer",
    "Wagner", "Becker", "Schulz", "Hoffmann", "Koch", "Richter",
    "Klein", "Wolf", "Neumann", "Braun",
]

# Jahrgang → Pflichtbücher (ISBN, Titel)
_BOOKLISTS: dict[int, list[tuple[str, str]]] = {
    5: [
        ("9783060000012", "Deutschbuch 5"),
        ("9783120000029", "Lambacher Schweizer Mathematik 5"),
        ("9783060000036", "English G Access 1"),
        ("9783140000043", "Diercke Weltatlas"),
    ],
    6: [
        ("9783060000050", "Deutschbuch 6"),
        ("9783120000067", "Lambacher Schweizer Mathematik 6"),
        ("9783060000074", "English G Access 2"),
    ],
}


class DemoDataGenerator:
    """Erzeugt reproduzierbare Demo-Aktionen."""

    def __init__(self, seed: int = 42, classes_per_grade: int = 2,
                 students_per_class: int = 6, delivered_ratio: float = 0.5):
        self.rng = random.Random(seed)
        self.classes_per_grade = classes_per_grade
        self.students_per_class = students_per_class
        self.delivered_ratio = delivered_ratio

    def _student_name(self, used: set[str]) -> str:
        while True:
            name = f"{self.rng.choice(_FIRST_NAMES)} {self.rng.choice(_LAST_NAMES)}"
            if name not in used:
                used.add(name)
                return name

    def actions(self) -> list:
        """Alle Aktionen in Anwendungsreihenfolge."""
        result: list = []
        used_names: set[str] = set()
        for grade, books in _BOOKLISTS.items():
            add_course = AddCourse(name=f"Jahrgang {grade}")
            result.append(add_course)
            for isbn, title in books:
                result.append(AddBookToCourse(course_id=add_course.id, isbn=isbn, title=title))

            for label in "abcdef"[: self.classes_per_grade]:
                add_class = AddClass(course_id=add_course.id, name=f"{grade}{label}")
                result.append(add_class)
                for _ in range(self.students_per_class):
                    add_student = AddStudent(class_id=add_class.id,
                                             name=self._student_name(used_names))
                    result.append(add_student)
                    for isbn, _title in books:
                        if self.rng.random() < self.delivered_ratio:
                            result.append(MarkDelivered(student_id=add_student.id, isbn=isbn))
        result.append(SelectCourse(course_id=None))
        return result

    def apply(self, store) -> int:
        """Wendet alle Aktionen auf den Store an; gibt die Anzahl wirksamer Aktionen zurück."""
        return sum(1 for action in self.actions() if store.dispatch(action))
