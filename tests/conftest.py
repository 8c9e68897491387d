"""Gemeinsame Testdaten: Kurs "Grade 5" mit Klasse 5A, zwei Büchern, zwei Schüler/innen."""

import pytest

from models.snapshot import Snapshot
from store.actions import AddBookToCourse, AddClass, AddCourse, AddStudent
from store.entity_store import EntityStore
from store.reducer import reduce

ATLAS = "9780000000001"
LESEBUCH = "9780000000002"


class Grade5:
    """IDs und Snapshot des Standard-Testbestands."""

    def __init__(self) -> None:
        self.course = AddCourse(name="Grade 5")
        self.school_class = AddClass(course_id=self.course.id, name="5A")
        self.mara = AddStudent(class_id=self.school_class.id, name="Mara")
        self.ben = AddStudent(class_id=self.school_class.id, name="Ben")
        actions = [
            self.course,
            self.school_class,
            AddBookToCourse(course_id=self.course.id, isbn=ATLAS, title="Atlas"),
            AddBookToCourse(course_id=self.course.id, isbn=LESEBUCH, title="Lesebuch"),
            self.mara,
            self.ben,
        ]
        snapshot = Snapshot.empty()
        for action in actions:
            snapshot = reduce(snapshot, action)
        self.snapshot = snapshot

    @property
    def course_id(self) -> str:
        return self.course.id

    @property
    def class_id(self) -> str:
        return self.school_class.id

    @property
    def mara_id(self) -> str:
        return self.mara.id

    @property
    def ben_id(self) -> str:
        return self.ben.id


@pytest.fixture
def grade5() -> Grade5:
    return Grade5()


@pytest.fixture
def grade5_store(grade5: Grade5) -> EntityStore:
    """Store mit Grade-5-Bestand; ausgewählt ist Ben (zuletzt angelegt)."""
    return EntityStore(grade5.snapshot)
