"""Tests für Aktionen und Reducer."""

import pytest

from models.snapshot import Snapshot
from store.actions import (
    ACTION_ADAPTER,
    ACTION_TYPES,
    AddBookToCourse,
    AddClass,
    AddCourse,
    AddStudent,
    Direction,
    ImportState,
    LookupFailed,
    LookupSucceeded,
    MarkDelivered,
    MoveStudent,
    RemoveBookFromCourse,
    RemoveClass,
    RemoveCourse,
    RemoveStudent,
    RenameClass,
    RenameCourse,
    RenameStudent,
    ReorderBook,
    ResetState,
    SelectClass,
    SelectCourse,
    SelectStudent,
    UnmarkDelivered,
)
from store.errors import IntegrityError, StoreError
from store.reducer import handled_action_types, reduce

from conftest import ATLAS, LESEBUCH


def _books(snapshot: Snapshot, course_id: str) -> list[str]:
    return snapshot.course_by_id(course_id).isbns


# ─── AKTIONSTYPEN ─────────────────────────────────────────────────────────────

class TestActionTypes:
    def test_every_action_has_handler(self):
        """Jede Variante der Aktions-Union hat genau einen Handler."""
        assert handled_action_types() == frozenset(ACTION_TYPES)

    def test_parse_tagged_action(self):
        """Aktionen lassen sich über das ``type``-Feld aus Dicts erzeugen."""
        action = ACTION_ADAPTER.validate_python({"type": "add_course", "name": "Jahrgang 7"})
        assert isinstance(action, AddCourse)
        assert action.name == "Jahrgang 7"
        assert action.id

    def test_unknown_tag_rejected(self):
        with pytest.raises(Exception):
            ACTION_ADAPTER.validate_python({"type": "delete_everything"})

    def test_actions_are_frozen(self):
        action = MarkDelivered(student_id="s1", isbn=ATLAS)
        with pytest.raises(Exception):
            action.isbn = LESEBUCH

    def test_unknown_object_returns_input(self, grade5):
        """Unbekannte Aktionsobjekte ändern nichts."""
        assert reduce(grade5.snapshot, object()) is grade5.snapshot


# ─── SZENARIO ─────────────────────────────────────────────────────────────────

class TestGrade5Scenario:
    def test_full_scenario(self):
        """Leerer Stand → Kurs, Klasse, Buch, Schülerin, Abgabe."""
        s = Snapshot.empty()
        add_course = AddCourse(name="Grade 5")
        s = reduce(s, add_course)
        assert len(s.courses) == 1
        assert s.selection.course_id == add_course.id

        add_class = AddClass(course_id=add_course.id, name="5A")
        s = reduce(s, add_class)
        s = reduce(s, AddBookToCourse(course_id=add_course.id, isbn=ATLAS, title="Atlas"))

        add_student = AddStudent(class_id=add_class.id, name="Mara")
        s = reduce(s, add_student)
        assert s.selection.student_id == add_student.id
        assert s.selected_student.name == "Mara"

        s = reduce(s, MarkDelivered(student_id=add_student.id, isbn=ATLAS))
        assert s.student_by_id(add_student.id).delivered_isbns == frozenset({ATLAS})

    def test_input_snapshot_not_mutated(self, grade5):
        """Der Eingabe-Snapshot bleibt unverändert."""
        before = grade5.snapshot.model_dump()
        reduce(grade5.snapshot, MarkDelivered(student_id=grade5.mara_id, isbn=ATLAS))
        reduce(grade5.snapshot, RemoveStudent(student_id=grade5.ben_id))
        reduce(grade5.snapshot, ReorderBook(course_id=grade5.course_id, isbn=LESEBUCH,
                                            direction=Direction.UP))
        assert grade5.snapshot.model_dump() == before


# ─── KURSE / BÜCHER ───────────────────────────────────────────────────────────

class TestCourses:
    def test_empty_name_refused(self):
        s = Snapshot.empty()
        assert reduce(s, AddCourse(name="   ")) is s

    def test_name_trimmed(self):
        s = reduce(Snapshot.empty(), AddCourse(name="  Jahrgang 5  "))
        assert s.courses[0].name == "Jahrgang 5"

    def test_add_course_selects_and_clears(self, grade5):
        """Neuer Kurs wird ausgewählt, Klasse und Schüler/in abgewählt."""
        action = AddCourse(name="Grade 6")
        s = reduce(grade5.snapshot, action)
        assert s.selection.course_id == action.id
        assert s.selection.class_id is None
        assert s.selection.student_id is None

    def test_remove_course_in_use_raises(self, grade5):
        """Kurs mit Klassen kann nicht gelöscht werden."""
        with pytest.raises(IntegrityError, match="5A"):
            reduce(grade5.snapshot, RemoveCourse(course_id=grade5.course_id))

    def test_integrity_error_is_store_error(self):
        assert issubclass(IntegrityError, StoreError)

    def test_remove_unused_course_clears_selection(self):
        action = AddCourse(name="Leer")
        s = reduce(Snapshot.empty(), action)
        s = reduce(s, RemoveCourse(course_id=action.id))
        assert s.courses == ()
        assert s.selection.course_id is None

    def test_rename_course(self, grade5):
        s = reduce(grade5.snapshot, RenameCourse(course_id=grade5.course_id, name="Jahrgang 5"))
        assert s.course_by_id(grade5.course_id).name == "Jahrgang 5"

    def test_rename_to_same_name_is_noop(self, grade5):
        s = grade5.snapshot
        assert reduce(s, RenameCourse(course_id=grade5.course_id, name="Grade 5")) is s


class TestBooks:
    def test_no_duplicate_isbn(self, grade5):
        """Dieselbe ISBN wird nie doppelt gelistet."""
        s = grade5.snapshot
        for title in ("Atlas neu", None, ""):
            s = reduce(s, AddBookToCourse(course_id=grade5.course_id, isbn=ATLAS, title=title))
        assert _books(s, grade5.course_id) == [ATLAS, LESEBUCH]
        assert s.course_by_id(grade5.course_id).find_book(ATLAS).title == "Atlas"

    def test_placeholder_title(self, grade5):
        s = reduce(grade5.snapshot, AddBookToCourse(course_id=grade5.course_id, isbn="123"))
        assert s.course_by_id(grade5.course_id).find_book("123").title == "Buch 123"

    def test_blank_title_uses_placeholder(self, grade5):
        s = reduce(grade5.snapshot,
                   AddBookToCourse(course_id=grade5.course_id, isbn="123", title="  "))
        assert s.course_by_id(grade5.course_id).find_book("123").title == "Buch 123"

    def test_empty_isbn_refused(self, grade5):
        s = grade5.snapshot
        assert reduce(s, AddBookToCourse(course_id=grade5.course_id, isbn=" ")) is s

    def test_unknown_course_is_noop(self, grade5):
        s = grade5.snapshot
        assert reduce(s, AddBookToCourse(course_id="fehlt", isbn="123")) is s

    def test_remove_book_keeps_order(self, grade5):
        s = reduce(grade5.snapshot, AddBookToCourse(course_id=grade5.course_id, isbn="3"))
        s = reduce(s, RemoveBookFromCourse(course_id=grade5.course_id, isbn=LESEBUCH))
        assert _books(s, grade5.course_id) == [ATLAS, "3"]

    def test_remove_absent_book_is_noop(self, grade5):
        s = grade5.snapshot
        assert reduce(s, RemoveBookFromCourse(course_id=grade5.course_id, isbn="x")) is s

    def test_reorder_swaps(self, grade5):
        s = reduce(grade5.snapshot, ReorderBook(course_id=grade5.course_id, isbn=LESEBUCH,
                                                direction=Direction.UP))
        assert _books(s, grade5.course_id) == [LESEBUCH, ATLAS]
        s = reduce(s, ReorderBook(course_id=grade5.course_id, isbn=LESEBUCH,
                                  direction=Direction.DOWN))
        assert _books(s, grade5.course_id) == [ATLAS, LESEBUCH]

    def test_reorder_at_boundary_is_noop(self, grade5):
        """Erstes Buch nach oben / letztes nach unten: keine Änderung, kein Fehler."""
        s = grade5.snapshot
        assert reduce(s, ReorderBook(course_id=grade5.course_id, isbn=ATLAS,
                                     direction=Direction.UP)) is s
        assert reduce(s, ReorderBook(course_id=grade5.course_id, isbn=LESEBUCH,
                                     direction=Direction.DOWN)) is s

    def test_lookup_succeeded_adds_book(self, grade5):
        s = reduce(grade5.snapshot, LookupSucceeded(course_id=grade5.course_id,
                                                    isbn="978", title="Physik"))
        assert s.course_by_id(grade5.course_id).find_book("978").title == "Physik"

    def test_lookup_failed_is_noop(self, grade5):
        s = grade5.snapshot
        assert reduce(s, LookupFailed(course_id=grade5.course_id, isbn="978")) is s


# ─── KLASSEN / SCHÜLER/INNEN ──────────────────────────────────────────────────

class TestClassesAndStudents:
    def test_remove_class_with_students_raises(self, grade5):
        with pytest.raises(IntegrityError):
            reduce(grade5.snapshot, RemoveClass(class_id=grade5.class_id))

    def test_remove_empty_class_clears_selection(self, grade5):
        add = AddClass(course_id=grade5.course_id, name="5B")
        s = reduce(grade5.snapshot, add)
        s = reduce(s, SelectClass(class_id=add.id))
        s = reduce(s, RemoveClass(class_id=add.id))
        assert s.class_by_id(add.id) is None
        assert s.selection.class_id is None
        assert s.selection.course_id == grade5.course_id

    def test_rename_class(self, grade5):
        s = reduce(grade5.snapshot, RenameClass(class_id=grade5.class_id, name="5a"))
        assert s.class_by_id(grade5.class_id).name == "5a"

    def test_add_student_empty_name_refused(self, grade5):
        s = grade5.snapshot
        assert reduce(s, AddStudent(class_id=grade5.class_id, name="")) is s

    def test_add_student_selects_hierarchy(self, grade5):
        """Neue/r Schüler/in wird samt Klasse und Kurs ausgewählt."""
        s = reduce(grade5.snapshot, SelectCourse(course_id=None))
        add = AddStudent(class_id=grade5.class_id, name="Lea")
        s = reduce(s, add)
        assert s.selection.course_id == grade5.course_id
        assert s.selection.class_id == grade5.class_id
        assert s.selection.student_id == add.id
        assert s.student_by_id(add.id).delivered_isbns == frozenset()

    def test_add_student_to_unknown_class_refused(self, grade5):
        """Unbekannte Klasse: keine Schüler/in, Auswahl zeigt nie ins Leere."""
        s = grade5.snapshot
        assert reduce(s, AddStudent(class_id="nope", name="Mara")) is s
        empty = Snapshot.empty()
        assert reduce(empty, AddStudent(class_id="nope", name="Mara")) is empty

    def test_remove_selected_student_clears_selection(self, grade5):
        s = reduce(grade5.snapshot, RemoveStudent(student_id=grade5.ben_id))
        assert s.student_by_id(grade5.ben_id) is None
        assert s.selection.student_id is None
        assert s.selection.class_id == grade5.class_id

    def test_rename_student(self, grade5):
        s = reduce(grade5.snapshot, RenameStudent(student_id=grade5.mara_id, name="Mara W."))
        assert s.student_by_id(grade5.mara_id).name == "Mara W."

    def test_move_student(self, grade5):
        add = AddClass(course_id=grade5.course_id, name="5B")
        s = reduce(grade5.snapshot, add)
        s = reduce(s, SelectStudent(student_id=grade5.ben_id))
        s = reduce(s, MoveStudent(student_id=grade5.ben_id, class_id=add.id))
        assert s.student_by_id(grade5.ben_id).class_id == add.id
        assert s.selection.student_id is None

    def test_move_to_unknown_class_is_noop(self, grade5):
        s = grade5.snapshot
        assert reduce(s, MoveStudent(student_id=grade5.ben_id, class_id="fehlt")) is s


# ─── AUSWAHL ──────────────────────────────────────────────────────────────────

class TestSelection:
    def test_select_course_resets_children(self, grade5):
        """Kursauswahl setzt Klasse und Schüler/in zurück."""
        s = reduce(grade5.snapshot, SelectCourse(course_id=grade5.course_id))
        assert s.selection.course_id == grade5.course_id
        assert s.selection.class_id is None
        assert s.selection.student_id is None

    def test_select_class_resets_student(self, grade5):
        """Klassenauswahl setzt Schüler/in zurück."""
        s = reduce(grade5.snapshot, SelectClass(class_id=grade5.class_id))
        assert s.selection.class_id == grade5.class_id
        assert s.selection.student_id is None

    def test_select_class_aligns_course(self, grade5):
        other = AddCourse(name="Grade 6")
        s = reduce(grade5.snapshot, other)
        s = reduce(s, SelectClass(class_id=grade5.class_id))
        assert s.selection.course_id == grade5.course_id

    def test_select_null(self, grade5):
        s = reduce(grade5.snapshot, SelectStudent(student_id=None))
        assert s.selection.student_id is None
        assert s.selection.class_id == grade5.class_id
        s = reduce(s, SelectClass(class_id=None))
        assert s.selection.class_id is None
        s = reduce(s, SelectCourse(course_id=None))
        assert s.selection.course_id is None

    def test_select_unknown_course(self, grade5):
        s = reduce(grade5.snapshot, SelectCourse(course_id="fehlt"))
        assert s.selection.course_id is None

    def test_select_student_from_other_class(self, grade5):
        add_class = AddClass(course_id=grade5.course_id, name="5B")
        add_student = AddStudent(class_id=add_class.id, name="Tim")
        s = reduce(reduce(grade5.snapshot, add_class), add_student)
        s = reduce(s, SelectStudent(student_id=grade5.mara_id))
        assert s.selection.class_id == grade5.class_id
        assert s.selected_student.name == "Mara"

    def test_same_selection_returns_input(self, grade5):
        s = grade5.snapshot
        assert reduce(s, SelectStudent(student_id=grade5.ben_id)) is s


# ─── ABGABEN ──────────────────────────────────────────────────────────────────

class TestDelivery:
    def test_mark_is_idempotent(self, grade5):
        """Wiederholtes Markieren ändert die Menge nicht."""
        action = MarkDelivered(student_id=grade5.mara_id, isbn=ATLAS)
        s1 = reduce(grade5.snapshot, action)
        s2 = reduce(s1, action)
        assert s2 is s1
        assert s2.student_by_id(grade5.mara_id).delivered_isbns == frozenset({ATLAS})

    def test_toggle_sequence_net_effect(self, grade5):
        s = grade5.snapshot
        for action in (
            MarkDelivered(student_id=grade5.mara_id, isbn=ATLAS),
            MarkDelivered(student_id=grade5.mara_id, isbn=ATLAS),
            UnmarkDelivered(student_id=grade5.mara_id, isbn=ATLAS),
            UnmarkDelivered(student_id=grade5.mara_id, isbn=ATLAS),
            MarkDelivered(student_id=grade5.mara_id, isbn=LESEBUCH),
        ):
            s = reduce(s, action)
        assert s.student_by_id(grade5.mara_id).delivered_isbns == frozenset({LESEBUCH})

    def test_unknown_student_is_noop(self, grade5):
        s = grade5.snapshot
        assert reduce(s, MarkDelivered(student_id="fehlt", isbn=ATLAS)) is s

    def test_unmark_absent_is_noop(self, grade5):
        s = grade5.snapshot
        assert reduce(s, UnmarkDelivered(student_id=grade5.mara_id, isbn=ATLAS)) is s

    def test_mark_only_touches_one_student(self, grade5):
        s = reduce(grade5.snapshot, MarkDelivered(student_id=grade5.mara_id, isbn=ATLAS))
        assert s.student_by_id(grade5.ben_id) is grade5.snapshot.student_by_id(grade5.ben_id)


# ─── IMPORT / RESET ───────────────────────────────────────────────────────────

class TestWholesale:
    def test_import_replaces(self, grade5):
        s = reduce(Snapshot.empty(), ImportState(snapshot=grade5.snapshot))
        assert s == grade5.snapshot

    def test_reset(self, grade5):
        s = reduce(grade5.snapshot, ResetState())
        assert s == Snapshot.empty()
        assert s.selection.course_id is None
