"""Reducer – reine Zustandsübergangsfunktion ``(Snapshot, Aktion) → Snapshot``.

Der Eingabe-Snapshot wird nie verändert. Unveränderte Teilstrukturen werden
geteilt (Tupel/frozenset/frozen Models), geänderte Einträge neu erzeugt.

Für jede Aktionsklasse aus ``store.actions`` gibt es genau einen Handler.
Unbekannte Objekte liefern den Eingabe-Snapshot unverändert zurück.
"""

import logging
from typing import Callable

from models.book import BookRef, placeholder_title
from models.course import Course
from models.school_class import SchoolClass
from models.selection import Selection
from models.snapshot import Snapshot
from models.student import Student
from store.actions import (
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
from store.errors import IntegrityError

logger = logging.getLogger(__name__)

Handler = Callable[[Snapshot, object], Snapshot]

_HANDLERS: dict[type, Handler] = {}


def _handles(action_type: type):
    def register(fn: Handler) -> Handler:
        _HANDLERS[action_type] = fn
        return fn
    return register


def handled_action_types() -> frozenset[type]:
    """Alle Aktionsklassen, für die ein Handler registriert ist."""
    return frozenset(_HANDLERS)


def reduce(snapshot: Snapshot, action) -> Snapshot:
    """Wendet eine Aktion an und gibt den neuen Snapshot zurück.

    Raises:
        IntegrityError: Kurs/Klasse soll gelöscht werden, wird aber noch verwendet.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        logger.warning(f"Unbekannte Aktion ignoriert: {type(action).__name__}")
        return snapshot
    return handler(snapshot, action)


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

def _clean_name(name: str) -> str:
    return (name or "").strip()


def _replace_course(snapshot: Snapshot, course_id: str,
                    fn: Callable[[Course], Course]) -> Snapshot:
    """Ersetzt den Kurs mit ``course_id`` durch ``fn(kurs)``; sonst unverändert."""
    changed = False
    courses = []
    for c in snapshot.courses:
        if c.id == course_id:
            new = fn(c)
            if new is not c:
                changed = True
            courses.append(new)
        else:
            courses.append(c)
    if not changed:
        return snapshot
    return snapshot.model_copy(update={"courses": tuple(courses)})


def _replace_student(snapshot: Snapshot, student_id: str,
                     fn: Callable[[Student], Student]) -> Snapshot:
    changed = False
    students = []
    for s in snapshot.students:
        if s.id == student_id:
            new = fn(s)
            if new is not s:
                changed = True
            students.append(new)
        else:
            students.append(s)
    if not changed:
        return snapshot
    return snapshot.model_copy(update={"students": tuple(students)})


def _replace_class(snapshot: Snapshot, class_id: str,
                   fn: Callable[[SchoolClass], SchoolClass]) -> Snapshot:
    changed = False
    classes = []
    for c in snapshot.classes:
        if c.id == class_id:
            new = fn(c)
            if new is not c:
                changed = True
            classes.append(new)
        else:
            classes.append(c)
    if not changed:
        return snapshot
    return snapshot.model_copy(update={"classes": tuple(classes)})


def _with_selection(snapshot: Snapshot, selection: Selection) -> Snapshot:
    if selection == snapshot.selection:
        return snapshot
    return snapshot.model_copy(update={"selection": selection})


def _add_book(snapshot: Snapshot, course_id: str, isbn: str, title) -> Snapshot:
    isbn = (isbn or "").strip()
    if not isbn:
        return snapshot

    def add(course: Course) -> Course:
        if course.book_index(isbn) >= 0:
            return course
        book = BookRef(isbn=isbn, title=_clean_name(title) or placeholder_title(isbn))
        return course.model_copy(update={"books": course.books + (book,)})

    return _replace_course(snapshot, course_id, add)


# ─── Kurse ────────────────────────────────────────────────────────────────────

@_handles(AddCourse)
def _add_course(snapshot: Snapshot, action: AddCourse) -> Snapshot:
    name = _clean_name(action.name)
    if not name:
        return snapshot
    course = Course(id=action.id, name=name)
    return snapshot.model_copy(update={
        "courses": snapshot.courses + (course,),
        "selection": Selection(course_id=course.id),
    })


@_handles(RemoveCourse)
def _remove_course(snapshot: Snapshot, action: RemoveCourse) -> Snapshot:
    if snapshot.course_by_id(action.course_id) is None:
        return snapshot
    users = snapshot.classes_of_course(action.course_id)
    if users:
        raise IntegrityError(
            f"Kurs wird noch von {len(users)} Klasse(n) verwendet "
            f"({', '.join(c.name for c in users)}) und kann nicht gelöscht werden."
        )
    sel = snapshot.selection
    return snapshot.model_copy(update={
        "courses": tuple(c for c in snapshot.courses if c.id != action.course_id),
        "selection": sel.model_copy(update={
            "course_id": None if sel.course_id == action.course_id else sel.course_id,
        }),
    })


@_handles(RenameCourse)
def _rename_course(snapshot: Snapshot, action: RenameCourse) -> Snapshot:
    name = _clean_name(action.name)
    if not name:
        return snapshot
    return _replace_course(
        snapshot, action.course_id,
        lambda c: c if c.name == name else c.model_copy(update={"name": name}),
    )


@_handles(AddBookToCourse)
def _add_book_to_course(snapshot: Snapshot, action: AddBookToCourse) -> Snapshot:
    return _add_book(snapshot, action.course_id, action.isbn, action.title)


@_handles(RemoveBookFromCourse)
def _remove_book_from_course(snapshot: Snapshot, action: RemoveBookFromCourse) -> Snapshot:
    def remove(course: Course) -> Course:
        if course.book_index(action.isbn) < 0:
            return course
        return course.model_copy(update={
            "books": tuple(b for b in course.books if b.isbn != action.isbn),
        })

    return _replace_course(snapshot, action.course_id, remove)


@_handles(ReorderBook)
def _reorder_book(snapshot: Snapshot, action: ReorderBook) -> Snapshot:
    def reorder(course: Course) -> Course:
        idx = course.book_index(action.isbn)
        if idx < 0:
            return course
        other = idx - 1 if action.direction == Direction.UP else idx + 1
        if other < 0 or other >= len(course.books):
            return course   # Bereits am Rand
        books = list(course.books)
        books[idx], books[other] = books[other], books[idx]
        return course.model_copy(update={"books": tuple(books)})

    return _replace_course(snapshot, action.course_id, reorder)


# ─── Klassen ──────────────────────────────────────────────────────────────────

@_handles(AddClass)
def _add_class(snapshot: Snapshot, action: AddClass) -> Snapshot:
    name = _clean_name(action.name)
    if not name:
        return snapshot
    cls = SchoolClass(id=action.id, name=name, course_id=action.course_id)
    return snapshot.model_copy(update={"classes": snapshot.classes + (cls,)})


@_handles(RemoveClass)
def _remove_class(snapshot: Snapshot, action: RemoveClass) -> Snapshot:
    if snapshot.class_by_id(action.class_id) is None:
        return snapshot
    members = snapshot.students_of_class(action.class_id)
    if members:
        raise IntegrityError(
            f"Klasse hat noch {len(members)} Schüler/innen. "
            f"Zuerst verschieben oder löschen."
        )
    sel = snapshot.selection
    if sel.class_id == action.class_id:
        sel = sel.model_copy(update={"class_id": None, "student_id": None})
    return snapshot.model_copy(update={
        "classes": tuple(c for c in snapshot.classes if c.id != action.class_id),
        "selection": sel,
    })


@_handles(RenameClass)
def _rename_class(snapshot: Snapshot, action: RenameClass) -> Snapshot:
    name = _clean_name(action.name)
    if not name:
        return snapshot
    return _replace_class(
        snapshot, action.class_id,
        lambda c: c if c.name == name else c.model_copy(update={"name": name}),
    )


# ─── Schüler/innen ────────────────────────────────────────────────────────────

@_handles(AddStudent)
def _add_student(snapshot: Snapshot, action: AddStudent) -> Snapshot:
    name = _clean_name(action.name)
    cls = snapshot.class_by_id(action.class_id)
    if not name or cls is None:
        return snapshot
    student = Student(id=action.id, name=name, class_id=cls.id)
    # Neue/r Schüler/in wird ausgewählt – samt Klasse und Kurs, damit die
    # Auswahl-Hierarchie konsistent bleibt.
    selection = Selection(
        course_id=cls.course_id,
        class_id=cls.id,
        student_id=student.id,
    )
    return snapshot.model_copy(update={
        "students": snapshot.students + (student,),
        "selection": selection,
    })


@_handles(RemoveStudent)
def _remove_student(snapshot: Snapshot, action: RemoveStudent) -> Snapshot:
    if snapshot.student_by_id(action.student_id) is None:
        return snapshot
    sel = snapshot.selection
    return snapshot.model_copy(update={
        "students": tuple(s for s in snapshot.students if s.id != action.student_id),
        "selection": sel.model_copy(update={
            "student_id": None if sel.student_id == action.student_id else sel.student_id,
        }),
    })


@_handles(RenameStudent)
def _rename_student(snapshot: Snapshot, action: RenameStudent) -> Snapshot:
    name = _clean_name(action.name)
    if not name:
        return snapshot
    return _replace_student(
        snapshot, action.student_id,
        lambda s: s if s.name == name else s.model_copy(update={"name": name}),
    )


@_handles(MoveStudent)
def _move_student(snapshot: Snapshot, action: MoveStudent) -> Snapshot:
    if snapshot.class_by_id(action.class_id) is None:
        return snapshot
    new = _replace_student(
        snapshot, action.student_id,
        lambda s: s if s.class_id == action.class_id
        else s.model_copy(update={"class_id": action.class_id}),
    )
    sel = new.selection
    if new is not snapshot and sel.student_id == action.student_id:
        # Ausgewählte/r Schüler/in gehört jetzt nicht mehr zur ausgewählten Klasse
        new = _with_selection(new, sel.model_copy(update={"student_id": None}))
    return new


# ─── Auswahl ──────────────────────────────────────────────────────────────────

@_handles(SelectCourse)
def _select_course(snapshot: Snapshot, action: SelectCourse) -> Snapshot:
    course_id = action.course_id if snapshot.course_by_id(action.course_id) else None
    return _with_selection(snapshot, Selection(course_id=course_id))


@_handles(SelectClass)
def _select_class(snapshot: Snapshot, action: SelectClass) -> Snapshot:
    cls = snapshot.class_by_id(action.class_id)
    if cls is None:
        return _with_selection(
            snapshot, Selection(course_id=snapshot.selection.course_id)
        )
    return _with_selection(snapshot, Selection(course_id=cls.course_id, class_id=cls.id))


@_handles(SelectStudent)
def _select_student(snapshot: Snapshot, action: SelectStudent) -> Snapshot:
    sel = snapshot.selection
    student = snapshot.student_by_id(action.student_id)
    if student is None:
        return _with_selection(snapshot, sel.model_copy(update={"student_id": None}))
    if student.class_id == sel.class_id:
        return _with_selection(snapshot, sel.model_copy(update={"student_id": student.id}))
    # Schüler/in aus anderer Klasse: Klasse und Kurs mit auswählen
    cls = snapshot.class_by_id(student.class_id)
    return _with_selection(snapshot, Selection(
        course_id=cls.course_id if cls else None,
        class_id=student.class_id,
        student_id=student.id,
    ))


# ─── Abgaben ──────────────────────────────────────────────────────────────────

@_handles(MarkDelivered)
def _mark_delivered(snapshot: Snapshot, action: MarkDelivered) -> Snapshot:
    return _replace_student(
        snapshot, action.student_id,
        lambda s: s if s.has_delivered(action.isbn)
        else s.model_copy(update={"delivered_isbns": s.delivered_isbns | {action.isbn}}),
    )


@_handles(UnmarkDelivered)
def _unmark_delivered(snapshot: Snapshot, action: UnmarkDelivered) -> Snapshot:
    return _replace_student(
        snapshot, action.student_id,
        lambda s: s if not s.has_delivered(action.isbn)
        else s.model_copy(update={"delivered_isbns": s.delivered_isbns - {action.isbn}}),
    )


# ─── Titelsuche ───────────────────────────────────────────────────────────────

@_handles(LookupSucceeded)
def _lookup_succeeded(snapshot: Snapshot, action: LookupSucceeded) -> Snapshot:
    return _add_book(snapshot, action.course_id, action.isbn, action.title)


@_handles(LookupFailed)
def _lookup_failed(snapshot: Snapshot, action: LookupFailed) -> Snapshot:
    # Manuelle Titeleingabe ist Sache des Aufrufers
    return snapshot


# ─── Daten ────────────────────────────────────────────────────────────────────

@_handles(ImportState)
def _import_state(snapshot: Snapshot, action: ImportState) -> Snapshot:
    return action.snapshot


@_handles(ResetState)
def _reset_state(snapshot: Snapshot, action: ResetState) -> Snapshot:
    return Snapshot.empty()
