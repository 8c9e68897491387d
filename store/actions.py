"""Geschlossene Menge aller Zustandsänderungen.

Jede Änderung am Snapshot ist genau eine dieser Aktionen. Jede Aktion trägt
nur die Felder, die sie braucht; das Feld ``type`` unterscheidet die Varianten
(z.B. beim Einlesen aus JSON über ``ACTION_ADAPTER``).

IDs neuer Einträge werden beim Erzeugen der Aktion vergeben, damit der
Reducer selbst deterministisch bleibt.
"""

import uuid
from enum import Enum
from typing import Annotated, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from models.snapshot import Snapshot


def new_id() -> str:
    """Erzeugt eine opake, eindeutige ID."""
    return uuid.uuid4().hex


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


# ─── Kurse ───

class AddCourse(_Action):
    type: Literal["add_course"] = "add_course"
    name: str
    id: str = Field(default_factory=new_id)


class RemoveCourse(_Action):
    type: Literal["remove_course"] = "remove_course"
    course_id: str


class RenameCourse(_Action):
    type: Literal["rename_course"] = "rename_course"
    course_id: str
    name: str


class AddBookToCourse(_Action):
    type: Literal["add_book_to_course"] = "add_book_to_course"
    course_id: str
    isbn: str
    title: Optional[str] = None   # None → Ersatztitel aus der ISBN


class RemoveBookFromCourse(_Action):
    type: Literal["remove_book_from_course"] = "remove_book_from_course"
    course_id: str
    isbn: str


class ReorderBook(_Action):
    type: Literal["reorder_book"] = "reorder_book"
    course_id: str
    isbn: str
    direction: Direction


# ─── Klassen ───

class AddClass(_Action):
    type: Literal["add_class"] = "add_class"
    course_id: str
    name: str
    id: str = Field(default_factory=new_id)


class RemoveClass(_Action):
    type: Literal["remove_class"] = "remove_class"
    class_id: str


class RenameClass(_Action):
    type: Literal["rename_class"] = "rename_class"
    class_id: str
    name: str


# ─── Schüler/innen ───

class AddStudent(_Action):
    type: Literal["add_student"] = "add_student"
    class_id: str
    name: str
    id: str = Field(default_factory=new_id)


class RemoveStudent(_Action):
    type: Literal["remove_student"] = "remove_student"
    student_id: str


class RenameStudent(_Action):
    type: Literal["rename_student"] = "rename_student"
    student_id: str
    name: str


class MoveStudent(_Action):
    type: Literal["move_student"] = "move_student"
    student_id: str
    class_id: str


# ─── Auswahl ───

class SelectCourse(_Action):
    type: Literal["select_course"] = "select_course"
    course_id: Optional[str] = None


class SelectClass(_Action):
    type: Literal["select_class"] = "select_class"
    class_id: Optional[str] = None


class SelectStudent(_Action):
    type: Literal["select_student"] = "select_student"
    student_id: Optional[str] = None


# ─── Abgaben ───

class MarkDelivered(_Action):
    type: Literal["mark_delivered"] = "mark_delivered"
    student_id: str
    isbn: str


class UnmarkDelivered(_Action):
    type: Literal["unmark_delivered"] = "unmark_delivered"
    student_id: str
    isbn: str


# ─── Titelsuche (Ergebnisse der Hintergrund-Abfrage) ───

class LookupSucceeded(_Action):
    type: Literal["lookup_succeeded"] = "lookup_succeeded"
    course_id: str
    isbn: str
    title: str


class LookupFailed(_Action):
    type: Literal["lookup_failed"] = "lookup_failed"
    course_id: str
    isbn: str
    reason: str = "Kein Titel gefunden"


# ─── Daten ───

class ImportState(_Action):
    type: Literal["import_state"] = "import_state"
    snapshot: Snapshot


class ResetState(_Action):
    type: Literal["reset_state"] = "reset_state"


Action = Annotated[
    Union[
        AddCourse, RemoveCourse, RenameCourse,
        AddBookToCourse, RemoveBookFromCourse, ReorderBook,
        AddClass, RemoveClass, RenameClass,
        AddStudent, RemoveStudent, RenameStudent, MoveStudent,
        SelectCourse, SelectClass, SelectStudent,
        MarkDelivered, UnmarkDelivered,
        LookupSucceeded, LookupFailed,
        ImportState, ResetState,
    ],
    Field(discriminator="type"),
]

ACTION_ADAPTER: TypeAdapter = TypeAdapter(Action)

# Alle Varianten, z.B. für die Vollständigkeitsprüfung des Reducers
ACTION_TYPES: tuple[type[_Action], ...] = get_args(get_args(Action)[0])
