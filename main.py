"""Bücherausgabe — Haupt-CLI.

Verwendung:
  python main.py course add "Jahrgang 5"      Kurs anlegen (wird ausgewählt)
  python main.py book add 9783060000012       Buch zum ausgewählten Kurs
  python main.py class add 5a                 Klasse im ausgewählten Kurs
  python main.py student add "Mara Weber"     Schüler/in in ausgewählter Klasse
  python main.py select student "Mara Weber"  Auswahl setzen
  python main.py scan deliver                 Abgabe-Kontrolle (Scanner/stdin)
  python main.py scan catalog                 Bücherliste per Scan aufbauen
  python main.py status                       Auswahl + Checkliste anzeigen
  python main.py export csv                   Bericht als CSV
  python main.py import sicherung.json        Datensicherung einspielen
  python main.py demo                         Demo-Daten erzeugen
  python main.py config init                  Konfigurationsdatei anlegen
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
import requests
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()


# ─── KONTEXT ──────────────────────────────────────────────────────────────────

class AppContext:
    """Pfade aus den globalen Optionen; Config und Store werden bei Bedarf geladen."""

    def __init__(self, config_path: Optional[Path] = None, data_path: Optional[Path] = None):
        self.config_path = config_path
        self.data_path = data_path
        self._config = None
        self._store = None

    @property
    def config(self):
        if self._config is None:
            from config.manager import ConfigManager
            try:
                self._config = ConfigManager(self.config_path).load()
            except ValueError as e:
                _fail(str(e))
        return self._config

    @property
    def store(self):
        if self._store is None:
            from data.storage import SnapshotStorage
            from store.entity_store import EntityStore
            path = self.data_path or Path(self.config.storage.path)
            self._store = EntityStore.from_storage(SnapshotStorage(path))
        return self._store


def _fail(message: str) -> None:
    """Gibt eine Fehlermeldung aus und beendet mit Status 1."""
    console.print(f"[red]{message}[/red]")
    sys.exit(1)


def _dispatch(store, action) -> bool:
    """Dispatcht eine Aktion; Integritätsfehler beenden den Befehl."""
    from store.errors import IntegrityError
    try:
        return store.dispatch(action)
    except IntegrityError as e:
        _fail(f"Nicht möglich: {e}")


def _pick(items, ref: str, label: str):
    """Sucht per ID, Name (ohne Groß/Klein) oder eindeutigem ID-Präfix."""
    ref = (ref or "").strip()
    for item in items:
        if item.id == ref:
            return item
    by_name = [i for i in items if i.name.casefold() == ref.casefold()]
    if len(by_name) == 1:
        return by_name[0]
    if len(by_name) > 1:
        _fail(f"{label} '{ref}' ist nicht eindeutig ({len(by_name)} Treffer) – bitte ID angeben.")
    by_prefix = [i for i in items if len(ref) >= 4 and i.id.startswith(ref)]
    if len(by_prefix) == 1:
        return by_prefix[0]
    _fail(f"{label} '{ref}' nicht gefunden.")


def _course_or_selected(app: AppContext, ref: Optional[str]):
    snapshot = app.store.snapshot
    if ref:
        return _pick(snapshot.courses, ref, "Kurs")
    course = snapshot.selected_course
    if course is None:
        _fail("Kein Kurs ausgewählt. Verwenden Sie [bold]select course[/bold] oder --course.")
    return course


def _class_or_selected(app: AppContext, ref: Optional[str]):
    snapshot = app.store.snapshot
    if ref:
        return _pick(snapshot.classes, ref, "Klasse")
    cls = snapshot.selected_class
    if cls is None:
        _fail("Keine Klasse ausgewählt. Verwenden Sie [bold]select class[/bold] oder --class.")
    return cls


def _student_or_selected(app: AppContext, ref: Optional[str]):
    snapshot = app.store.snapshot
    if ref:
        return _pick(snapshot.students, ref, "Schüler/in")
    student = snapshot.selected_student
    if student is None:
        _fail("Keine Schüler/in ausgewählt. Verwenden Sie [bold]select student[/bold] oder --student.")
    return student


def _short(entity_id: str) -> str:
    return entity_id[:8]


def _marker(selected: bool) -> str:
    return "[bold cyan]▶[/bold cyan]" if selected else ""


def _print_notice(notice) -> None:
    if notice is not None:
        console.print(notice.rich_markup())


# ─── KURSE ────────────────────────────────────────────────────────────────────

@click.group("course")
def cmd_course():
    """Kurse (Bücherlisten) verwalten."""


@cmd_course.command("add")
@click.argument("name")
@click.pass_obj
def course_add(app: AppContext, name: str):
    """Legt einen Kurs an und wählt ihn aus."""
    from store.actions import AddCourse
    action = AddCourse(name=name)
    if not _dispatch(app.store, action):
        _fail("Kursname darf nicht leer sein.")
    console.print(f"[green]✓[/green] Kurs '{name.strip()}' angelegt ({_short(action.id)}).")


@cmd_course.command("remove")
@click.argument("course")
@click.pass_obj
def course_remove(app: AppContext, course: str):
    """Löscht einen Kurs (nur ohne zugeordnete Klassen)."""
    from store.actions import RemoveCourse
    c = _pick(app.store.snapshot.courses, course, "Kurs")
    _dispatch(app.store, RemoveCourse(course_id=c.id))
    console.print(f"[green]✓[/green] Kurs '{c.name}' gelöscht.")


@cmd_course.command("rename")
@click.argument("course")
@click.argument("name")
@click.pass_obj
def course_rename(app: AppContext, course: str, name: str):
    """Benennt einen Kurs um."""
    from store.actions import RenameCourse
    c = _pick(app.store.snapshot.courses, course, "Kurs")
    if not _dispatch(app.store, RenameCourse(course_id=c.id, name=name)):
        console.print("[yellow]Keine Änderung.[/yellow]")
        return
    console.print(f"[green]✓[/green] Kurs '{c.name}' → '{name.strip()}'.")


@cmd_course.command("list")
@click.pass_obj
def course_list(app: AppContext):
    """Listet alle Kurse auf."""
    snapshot = app.store.snapshot
    if not snapshot.courses:
        console.print("[dim]Keine Kurse vorhanden.[/dim]")
        return
    table = Table(title="Kurse", box=box.ROUNDED)
    table.add_column("")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Bücher", justify="right")
    table.add_column("Klassen", justify="right")
    for c in snapshot.courses:
        table.add_row(
            _marker(c.id == snapshot.selection.course_id), _short(c.id), c.name,
            str(len(c.books)), str(len(snapshot.classes_of_course(c.id))),
        )
    console.print(table)


@cmd_course.command("show")
@click.argument("course", required=False)
@click.pass_obj
def course_show(app: AppContext, course: Optional[str]):
    """Zeigt die Bücherliste eines Kurses (Standard: ausgewählter Kurs)."""
    from export.tui_renderer import render_course_rows
    c = _course_or_selected(app, course)
    classes = app.store.snapshot.classes_of_course(c.id)
    table = Table(title=f"Bücherliste: {c.name}", box=box.ROUNDED)
    table.add_column("Nr.", justify="right")
    table.add_column("ISBN")
    table.add_column("Titel", style="bold")
    for row in render_course_rows(c):
        table.add_row(*row)
    console.print(table)
    names = ", ".join(cls.name for cls in classes) or "—"
    console.print(f"[bold]Klassen:[/bold] {names}")


# ─── BÜCHER ───────────────────────────────────────────────────────────────────

@click.group("book")
def cmd_book():
    """Bücherliste eines Kurses bearbeiten."""


@cmd_book.command("add")
@click.argument("isbn")
@click.argument("title", required=False)
@click.option("--course", "course_ref", default=None, help="Kurs (Standard: ausgewählter Kurs).")
@click.pass_obj
def book_add(app: AppContext, isbn: str, title: Optional[str], course_ref: Optional[str]):
    """Fügt ein Buch hinzu. Ohne Titel wird ein Ersatztitel verwendet."""
    from store.actions import AddBookToCourse
    c = _course_or_selected(app, course_ref)
    if not _dispatch(app.store, AddBookToCourse(course_id=c.id, isbn=isbn, title=title)):
        console.print(f"[yellow]Buch {isbn} ist bereits in der Liste (oder ISBN leer).[/yellow]")
        return
    book = app.store.snapshot.course_by_id(c.id).find_book(isbn.strip())
    console.print(f"[green]✓[/green] Buch \"{book.title}\" zu '{c.name}' hinzugefügt.")


@cmd_book.command("lookup")
@click.argument("isbn")
@click.option("--course", "course_ref", default=None, help="Kurs (Standard: ausgewählter Kurs).")
@click.pass_obj
def book_lookup(app: AppContext, isbn: str, course_ref: Optional[str]):
    """Sucht den Titel zur ISBN und fügt das Buch hinzu."""
    from scanner.lookup import TitleLookup
    from store.actions import AddBookToCourse, LookupFailed, LookupSucceeded
    isbn = isbn.strip()
    c = _course_or_selected(app, course_ref)
    existing = c.find_book(isbn)
    if existing is not None:
        console.print(f"[yellow]\"{existing.title}\" ist bereits in der Liste.[/yellow]")
        return
    cfg = app.config.lookup
    title = None
    if cfg.enabled:
        with console.status(f"Titelsuche für {isbn}..."):
            title = TitleLookup(cfg.endpoint, cfg.timeout_seconds).find_title(isbn)
    if title:
        if not _dispatch(app.store, LookupSucceeded(course_id=c.id, isbn=isbn, title=title)):
            _fail(f"Buch {isbn} konnte nicht hinzugefügt werden.")
        console.print(f"[green]✓[/green] Buch \"{title}\" hinzugefügt.")
        return
    _dispatch(app.store, LookupFailed(course_id=c.id, isbn=isbn))
    manual = click.prompt("Kein Titel gefunden. Titel eingeben", default="", show_default=False)
    if not _dispatch(app.store, AddBookToCourse(course_id=c.id, isbn=isbn, title=manual or None)):
        _fail(f"Buch {isbn} konnte nicht hinzugefügt werden.")
    book = app.store.snapshot.course_by_id(c.id).find_book(isbn)
    console.print(f"[green]✓[/green] Buch \"{book.title}\" hinzugefügt.")


@cmd_book.command("remove")
@click.argument("isbn")
@click.option("--course", "course_ref", default=None, help="Kurs (Standard: ausgewählter Kurs).")
@click.pass_obj
def book_remove(app: AppContext, isbn: str, course_ref: Optional[str]):
    """Entfernt ein Buch aus der Bücherliste."""
    from store.actions import RemoveBookFromCourse
    isbn = isbn.strip()
    c = _course_or_selected(app, course_ref)
    if not _dispatch(app.store, RemoveBookFromCourse(course_id=c.id, isbn=isbn)):
        _fail(f"Buch {isbn} ist nicht in der Liste von '{c.name}'.")
    console.print(f"[green]✓[/green] Buch {isbn} entfernt.")


def _reorder(app: AppContext, isbn: str, course_ref: Optional[str], direction) -> None:
    from store.actions import ReorderBook
    isbn = isbn.strip()
    c = _course_or_selected(app, course_ref)
    if c.find_book(isbn) is None:
        _fail(f"Buch {isbn} ist nicht in der Liste von '{c.name}'.")
    if not _dispatch(app.store, ReorderBook(course_id=c.id, isbn=isbn, direction=direction)):
        console.print("[yellow]Buch steht bereits am Rand der Liste.[/yellow]")
        return
    console.print(f"[green]✓[/green] Buch {isbn} verschoben.")


@cmd_book.command("up")
@click.argument("isbn")
@click.option("--course", "course_ref", default=None, help="Kurs (Standard: ausgewählter Kurs).")
@click.pass_obj
def book_up(app: AppContext, isbn: str, course_ref: Optional[str]):
    """Schiebt ein Buch eine Position nach oben."""
    from store.actions import Direction
    _reorder(app, isbn, course_ref, Direction.UP)


@cmd_book.command("down")
@click.argument("isbn")
@click.option("--course", "course_ref", default=None, help="Kurs (Standard: ausgewählter Kurs).")
@click.pass_obj
def book_down(app: AppContext, isbn: str, course_ref: Optional[str]):
    """Schiebt ein Buch eine Position nach unten."""
    from store.actions import Direction
    _reorder(app, isbn, course_ref, Direction.DOWN)


# ─── KLASSEN ──────────────────────────────────────────────────────────────────

@click.group("class")
def cmd_class():
    """Klassen verwalten."""


@cmd_class.command("add")
@click.argument("name")
@click.option("--course", "course_ref", default=None, help="Kurs (Standard: ausgewählter Kurs).")
@click.pass_obj
def class_add(app: AppContext, name: str, course_ref: Optional[str]):
    """Legt eine Klasse an, die dem Kurs folgt."""
    from store.actions import AddClass
    c = _course_or_selected(app, course_ref)
    action = AddClass(course_id=c.id, name=name)
    if not _dispatch(app.store, action):
        _fail("Klassenname darf nicht leer sein.")
    console.print(f"[green]✓[/green] Klasse '{name.strip()}' angelegt ({_short(action.id)}).")


@cmd_class.command("remove")
@click.argument("school_class")
@click.pass_obj
def class_remove(app: AppContext, school_class: str):
    """Löscht eine Klasse (nur ohne Schüler/innen)."""
    from store.actions import RemoveClass
    cls = _pick(app.store.snapshot.classes, school_class, "Klasse")
    _dispatch(app.store, RemoveClass(class_id=cls.id))
    console.print(f"[green]✓[/green] Klasse '{cls.name}' gelöscht.")


@cmd_class.command("rename")
@click.argument("school_class")
@click.argument("name")
@click.pass_obj
def class_rename(app: AppContext, school_class: str, name: str):
    """Benennt eine Klasse um."""
    from store.actions import RenameClass
    cls = _pick(app.store.snapshot.classes, school_class, "Klasse")
    if not _dispatch(app.store, RenameClass(class_id=cls.id, name=name)):
        console.print("[yellow]Keine Änderung.[/yellow]")
        return
    console.print(f"[green]✓[/green] Klasse '{cls.name}' → '{name.strip()}'.")


@cmd_class.command("list")
@click.option("--course", "course_ref", default=None, help="Nur Klassen dieses Kurses.")
@click.pass_obj
def class_list(app: AppContext, course_ref: Optional[str]):
    """Listet Klassen mit Abgabestand auf."""
    snapshot = app.store.snapshot
    classes = snapshot.classes
    if course_ref:
        classes = snapshot.classes_of_course(_pick(snapshot.courses, course_ref, "Kurs").id)
    if not classes:
        console.print("[dim]Keine Klassen vorhanden.[/dim]")
        return
    table = Table(title="Klassen", box=box.ROUNDED)
    table.add_column("")
    table.add_column("ID", style="dim")
    table.add_column("Klasse", style="bold")
    table.add_column("Kurs")
    table.add_column("Schüler/innen", justify="right")
    table.add_column("Vollständig", justify="right")
    for cls in classes:
        course = snapshot.course_by_id(cls.course_id)
        students = snapshot.students_of_class(cls.id)
        complete = sum(1 for s in students if snapshot.progress(s).is_complete)
        table.add_row(
            _marker(cls.id == snapshot.selection.class_id), _short(cls.id), cls.name,
            course.name if course else "[red]fehlt[/red]",
            str(len(students)), f"{complete}/{len(students)}",
        )
    console.print(table)


# ─── SCHÜLER/INNEN ────────────────────────────────────────────────────────────

@click.group("student")
def cmd_student():
    """Schüler/innen verwalten."""


@cmd_student.command("add")
@click.argument("name")
@click.option("--class", "class_ref", default=None, help="Klasse (Standard: ausgewählte Klasse).")
@click.pass_obj
def student_add(app: AppContext, name: str, class_ref: Optional[str]):
    """Legt eine Schülerin / einen Schüler an und wählt sie/ihn aus."""
    from store.actions import AddStudent
    cls = _class_or_selected(app, class_ref)
    action = AddStudent(class_id=cls.id, name=name)
    if not _dispatch(app.store, action):
        _fail("Name darf nicht leer sein.")
    console.print(f"[green]✓[/green] '{name.strip()}' in Klasse {cls.name} angelegt ({_short(action.id)}).")


@cmd_student.command("remove")
@click.argument("student")
@click.pass_obj
def student_remove(app: AppContext, student: str):
    """Löscht eine Schülerin / einen Schüler."""
    from store.actions import RemoveStudent
    s = _pick(app.store.snapshot.students, student, "Schüler/in")
    _dispatch(app.store, RemoveStudent(student_id=s.id))
    console.print(f"[green]✓[/green] '{s.name}' gelöscht.")


@cmd_student.command("rename")
@click.argument("student")
@click.argument("name")
@click.pass_obj
def student_rename(app: AppContext, student: str, name: str):
    """Benennt eine Schülerin / einen Schüler um."""
    from store.actions import RenameStudent
    s = _pick(app.store.snapshot.students, student, "Schüler/in")
    if not _dispatch(app.store, RenameStudent(student_id=s.id, name=name)):
        console.print("[yellow]Keine Änderung.[/yellow]")
        return
    console.print(f"[green]✓[/green] '{s.name}' → '{name.strip()}'.")


@cmd_student.command("move")
@click.argument("student")
@click.argument("school_class")
@click.pass_obj
def student_move(app: AppContext, student: str, school_class: str):
    """Verschiebt eine Schülerin / einen Schüler in eine andere Klasse."""
    from store.actions import MoveStudent
    snapshot = app.store.snapshot
    s = _pick(snapshot.students, student, "Schüler/in")
    cls = _pick(snapshot.classes, school_class, "Klasse")
    if not _dispatch(app.store, MoveStudent(student_id=s.id, class_id=cls.id)):
        console.print(f"[yellow]'{s.name}' ist bereits in Klasse {cls.name}.[/yellow]")
        return
    console.print(f"[green]✓[/green] '{s.name}' → Klasse {cls.name}.")


@cmd_student.command("list")
@click.option("--class", "class_ref", default=None, help="Klasse (Standard: ausgewählte Klasse).")
@click.option("--all", "show_all", is_flag=True, default=False, help="Alle Schüler/innen.")
@click.pass_obj
def student_list(app: AppContext, class_ref: Optional[str], show_all: bool):
    """Listet Schüler/innen mit Abgabestand auf."""
    snapshot = app.store.snapshot
    if show_all:
        students = list(snapshot.students)
        title = "Alle Schüler/innen"
    else:
        cls = _class_or_selected(app, class_ref)
        students = snapshot.students_of_class(cls.id)
        title = f"Klasse {cls.name}"
    if not students:
        console.print("[dim]Keine Schüler/innen vorhanden.[/dim]")
        return
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Klasse")
    table.add_column("Abgegeben", justify="right")
    for s in sorted(students, key=lambda s: s.name):
        cls = snapshot.class_by_id(s.class_id)
        p = snapshot.progress(s)
        color = "green" if p.is_complete else ("yellow" if p.delivered else "red")
        table.add_row(
            _marker(s.id == snapshot.selection.student_id), _short(s.id), s.name,
            cls.name if cls else "[red]fehlt[/red]",
            f"[{color}]{p.delivered}/{p.required}[/{color}]",
        )
    console.print(table)


# ─── AUSWAHL ──────────────────────────────────────────────────────────────────

@click.group("select")
def cmd_select():
    """Auswahl (Kurs → Klasse → Schüler/in) setzen."""


@cmd_select.command("course")
@click.argument("course")
@click.pass_obj
def select_course(app: AppContext, course: str):
    """Wählt einen Kurs aus (Klasse und Schüler/in werden abgewählt)."""
    from store.actions import SelectCourse
    c = _pick(app.store.snapshot.courses, course, "Kurs")
    app.store.dispatch(SelectCourse(course_id=c.id))
    console.print(f"[green]✓[/green] Kurs '{c.name}' ausgewählt.")


@cmd_select.command("class")
@click.argument("school_class")
@click.pass_obj
def select_class(app: AppContext, school_class: str):
    """Wählt eine Klasse (und deren Kurs) aus."""
    from store.actions import SelectClass
    cls = _pick(app.store.snapshot.classes, school_class, "Klasse")
    app.store.dispatch(SelectClass(class_id=cls.id))
    console.print(f"[green]✓[/green] Klasse {cls.name} ausgewählt.")


@cmd_select.command("student")
@click.argument("student")
@click.pass_obj
def select_student(app: AppContext, student: str):
    """Wählt eine Schülerin / einen Schüler (samt Klasse und Kurs) aus."""
    from store.actions import SelectStudent
    s = _pick(app.store.snapshot.students, student, "Schüler/in")
    app.store.dispatch(SelectStudent(student_id=s.id))
    console.print(f"[green]✓[/green] '{s.name}' ausgewählt.")


@cmd_select.command("clear")
@click.pass_obj
def select_clear(app: AppContext):
    """Hebt die gesamte Auswahl auf."""
    from store.actions import SelectCourse
    app.store.dispatch(SelectCourse(course_id=None))
    console.print("[green]✓[/green] Auswahl aufgehoben.")


# ─── ABGABEN ──────────────────────────────────────────────────────────────────

@click.command("mark")
@click.argument("isbn")
@click.option("--student", "student_ref", default=None,
              help="Schüler/in (Standard: ausgewählte/r Schüler/in).")
@click.pass_obj
def cmd_mark(app: AppContext, isbn: str, student_ref: Optional[str]):
    """Markiert ein Buch als abgegeben (nur Bücher des Kurses der Klasse)."""
    from scanner.resolver import delivery_action
    student = _student_or_selected(app, student_ref)
    snapshot = app.store.snapshot
    course = snapshot.course_of_student(student)
    if course is None:
        _fail(f"'{student.name}' ist keinem Kurs zugeordnet.")
    action, notice = delivery_action(isbn.strip(), student, course)
    if action is not None:
        app.store.dispatch(action)
    _print_notice(notice)
    if notice is not None and notice.is_error:
        sys.exit(1)


@click.command("unmark")
@click.argument("isbn")
@click.option("--student", "student_ref", default=None,
              help="Schüler/in (Standard: ausgewählte/r Schüler/in).")
@click.pass_obj
def cmd_unmark(app: AppContext, isbn: str, student_ref: Optional[str]):
    """Nimmt die Abgabe-Markierung eines Buches zurück."""
    from store.actions import UnmarkDelivered
    isbn = isbn.strip()
    student = _student_or_selected(app, student_ref)
    if not app.store.dispatch(UnmarkDelivered(student_id=student.id, isbn=isbn)):
        console.print(f"[yellow]Buch {isbn} war nicht als abgegeben markiert.[/yellow]")
        return
    console.print(f"[green]✓[/green] Markierung für {isbn} zurückgenommen.")


@click.command("status")
@click.pass_obj
def cmd_status(app: AppContext):
    """Zeigt Auswahl und passende Checkliste bzw. Klassenübersicht."""
    from export.tui_renderer import (
        render_checklist_rows,
        render_class_matrix_rows,
        render_course_rows,
    )
    snapshot = app.store.snapshot
    course, cls, student = snapshot.selected_course, snapshot.selected_class, snapshot.selected_student
    console.print(Panel(
        f"[bold]Kurs:[/bold] {course.name if course else '—'}  |  "
        f"[bold]Klasse:[/bold] {cls.name if cls else '—'}  |  "
        f"[bold]Schüler/in:[/bold] {student.name if student else '—'}",
        title="Auswahl",
        border_style="cyan",
    ))

    if student is not None and course is not None:
        p = snapshot.progress(student)
        table = Table(title=f"Checkliste {student.name} ({p.delivered}/{p.required})",
                      box=box.ROUNDED)
        table.add_column("Nr.", justify="right")
        table.add_column("")
        table.add_column("ISBN")
        table.add_column("Titel")
        for row in render_checklist_rows(student, course):
            table.add_row(*row)
        console.print(table)
    elif cls is not None:
        header, rows = render_class_matrix_rows(cls.id, snapshot)
        if rows:
            table = Table(title=f"Klasse {cls.name}", box=box.ROUNDED)
            for col in header:
                table.add_column(col)
            for row in rows:
                table.add_row(*row)
            console.print(table)
        else:
            console.print("[dim]Keine Schüler/innen in dieser Klasse.[/dim]")
    elif course is not None:
        table = Table(title=f"Bücherliste: {course.name}", box=box.ROUNDED)
        table.add_column("Nr.", justify="right")
        table.add_column("ISBN")
        table.add_column("Titel")
        for row in render_course_rows(course):
            table.add_row(*row)
        console.print(table)

    console.print(f"\n[dim]{snapshot.summary()}[/dim]")


# ─── SCAN ─────────────────────────────────────────────────────────────────────

@click.group("scan")
def cmd_scan():
    """Barcodes scannen (Handscanner/Tastatur; ein Code pro Zeile, 'q' beendet)."""


def _scan_session(app: AppContext, stream, on_code):
    from scanner.debounce import ScanDebouncer
    from scanner.session import LineDecoderSource, ScanSession
    return ScanSession(
        LineDecoderSource(stream),
        on_code=on_code,
        debouncer=ScanDebouncer(window_ms=app.config.scanner.debounce_ms),
        on_notice=_print_notice,
    )


def _signal(app: AppContext, notice) -> None:
    _print_notice(notice)
    if notice is not None and not notice.is_error and app.config.scanner.beep:
        console.bell()


@cmd_scan.command("deliver")
@click.option("--input", "-i", "stream", type=click.File("r"), default="-",
              help="Eingabe (Standard: stdin).")
@click.option("--student", "student_ref", default=None,
              help="Schüler/in vor dem Scannen auswählen.")
@click.pass_obj
def scan_deliver(app: AppContext, stream, student_ref: Optional[str]):
    """Abgabe-Kontrolle: gescannte Bücher der ausgewählten Schüler/in markieren."""
    from scanner.resolver import ScanResolver
    from store.actions import SelectStudent
    if student_ref:
        s = _pick(app.store.snapshot.students, student_ref, "Schüler/in")
        app.store.dispatch(SelectStudent(student_id=s.id))
    snapshot = app.store.snapshot
    student = snapshot.selected_student
    if student is None or snapshot.course_of_class(snapshot.selection.class_id) is None:
        _fail("Bitte zuerst eine Schüler/in (mit Klasse und Kurs) auswählen.")

    resolver = ScanResolver(app.store)
    console.print(f"[bold]Abgabe-Kontrolle:[/bold] {student.name} – Codes scannen, 'q' beendet.")
    with _scan_session(app, stream, lambda code: _signal(app, resolver.resolve_delivery(code))) as session:
        ok = session.start()
    if not ok:
        sys.exit(1)

    p = app.store.snapshot.progress(app.store.snapshot.student_by_id(student.id))
    console.print(
        f"[dim]{session.accepted} Scan(s), {session.suppressed} doppelt. "
        f"Stand: {p.delivered}/{p.required}[/dim]"
    )


@cmd_scan.command("catalog")
@click.option("--input", "-i", "stream", type=click.File("r"), default="-",
              help="Eingabe (Standard: stdin).")
@click.option("--course", "course_ref", default=None,
              help="Kurs vor dem Scannen auswählen.")
@click.option("--no-manual", is_flag=True, default=False,
              help="Ohne Titel-Nachfrage: Ersatztitel verwenden.")
@click.pass_obj
def scan_catalog(app: AppContext, stream, course_ref: Optional[str], no_manual: bool):
    """Bücherliste aufbauen: gescannte ISBNs mit Titelsuche hinzufügen.

    Wird kein Titel gefunden, wird die nächste Eingabezeile als Titel
    übernommen (leer = Ersatztitel).
    """
    from scanner.lookup import LookupRunner, PendingLookup, TitleLookup
    from concurrent.futures import TimeoutError as FuturesTimeout
    from scanner.resolver import CatalogOutcome, ScanResolver, catalog_outcome
    from store.actions import LookupFailed, SelectCourse
    if course_ref:
        c = _pick(app.store.snapshot.courses, course_ref, "Kurs")
        app.store.dispatch(SelectCourse(course_id=c.id))
    course = app.store.snapshot.selected_course
    if course is None:
        _fail("Bitte zuerst einen Kurs auswählen.")

    cfg = app.config.lookup
    resolver = ScanResolver(app.store)
    runner = LookupRunner(TitleLookup(cfg.endpoint, cfg.timeout_seconds), app.store) if cfg.enabled else None

    def ask_title(isbn: str) -> str:
        if no_manual:
            return ""
        console.print(f"[yellow]Kein Titel für {isbn} gefunden.[/yellow] Titel eingeben (leer = Ersatztitel):")
        return stream.readline().strip()

    def on_code(code: str) -> None:
        if runner is None:
            outcome = resolver.resolve_catalog(code)
        else:
            result = resolver.start_catalog_lookup(code, runner)
            if isinstance(result, PendingLookup):
                try:
                    with console.status(f"Titelsuche für {code}..."):
                        action = result.result(timeout=cfg.timeout_seconds + 2)
                except KeyboardInterrupt:
                    result.cancel()
                    console.print(f"[yellow]Titelsuche für {code} abgebrochen.[/yellow]")
                    return
                except FuturesTimeout:
                    # Spätes Ergebnis wird verworfen, Titel manuell erfragen
                    result.cancel()
                    console.print(f"[yellow]Titelsuche für {code} dauert zu lange.[/yellow]")
                    action = LookupFailed(course_id=result.course_id, isbn=result.isbn)
                outcome = catalog_outcome(action, bool(result.applied))
            else:
                outcome = result
        if not isinstance(outcome, CatalogOutcome):
            return
        if outcome.manual_entry is not None:
            _signal(app, resolver.confirm_manual_entry(outcome.manual_entry,
                                                       ask_title(outcome.manual_entry.isbn)))
        else:
            _signal(app, outcome.notice)

    console.print(f"[bold]Bücherliste aufbauen:[/bold] {course.name} – ISBNs scannen, 'q' beendet.")
    try:
        with _scan_session(app, stream, on_code) as session:
            ok = session.start()
    finally:
        if runner is not None:
            runner.close()
    if not ok:
        sys.exit(1)
    n_books = len(app.store.snapshot.course_by_id(course.id).books)
    console.print(f"[dim]{session.accepted} Scan(s). Bücher in '{course.name}': {n_books}[/dim]")


@cmd_scan.command("check-decoder")
@click.pass_obj
def scan_check_decoder(app: AppContext):
    """Prüft, welche Adresse der Decoder-Bibliothek erreichbar ist."""
    from scanner.locator import LocatorLoadError, load_first
    timeout = app.config.lookup.timeout_seconds

    def fetch(url: str):
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        return response

    try:
        url, response = load_first(app.config.scanner.decoder_locators, fetch)
    except LocatorLoadError as e:
        _fail(f"Decoder-Bibliothek nicht erreichbar: {e}")
    console.print(f"[green]✓[/green] Decoder-Bibliothek geladen: {url} ({len(response.content)} Bytes)")


# ─── EXPORT ───────────────────────────────────────────────────────────────────

@click.group("export")
def cmd_export():
    """Datensicherung und Berichte exportieren."""


def _export_path(app: AppContext, output: Optional[str], suffix: str) -> Path:
    from export.helpers import export_filename
    if output:
        return Path(output)
    cfg = app.config.export
    return Path(cfg.output_dir) / export_filename(cfg.file_prefix, suffix)


_OUTPUT_HELP = "Ausgabedatei (Standard: Exportordner mit Datum)."


@cmd_export.command("json")
@click.option("--output", "-o", default=None, help=_OUTPUT_HELP)
@click.pass_obj
def export_json_cmd(app: AppContext, output: Optional[str]):
    """Vollständige Datensicherung als JSON."""
    from export.helpers import export_json
    path = export_json(app.store.snapshot, _export_path(app, output, "json"))
    console.print(f"[green]✓[/green] Datensicherung gespeichert: {path}")


@cmd_export.command("csv")
@click.option("--output", "-o", default=None, help=_OUTPUT_HELP)
@click.pass_obj
def export_csv_cmd(app: AppContext, output: Optional[str]):
    """Abgabe-Bericht als CSV (eine Zeile pro Schüler/in und Buch)."""
    from export.csv_export import export_csv
    path = export_csv(app.store.snapshot, _export_path(app, output, "csv"))
    console.print(f"[green]✓[/green] CSV-Bericht gespeichert: {path}")


@cmd_export.command("excel")
@click.option("--output", "-o", default=None, help=_OUTPUT_HELP)
@click.pass_obj
def export_excel_cmd(app: AppContext, output: Optional[str]):
    """Excel-Arbeitsmappe: Übersicht, Bericht, ein Blatt pro Klasse."""
    from export.excel_export import ExcelExporter
    exporter = ExcelExporter(app.store.snapshot, app.config.export.school_name)
    path = exporter.export(_export_path(app, output, "xlsx"))
    console.print(f"[green]✓[/green] Excel gespeichert: {path}")


@cmd_export.command("pdf")
@click.option("--output", "-o", default=None, help=_OUTPUT_HELP)
@click.pass_obj
def export_pdf_cmd(app: AppContext, output: Optional[str]):
    """PDF-Checklisten (eine Seite pro Klasse)."""
    from export.pdf_export import PdfExporter
    exporter = PdfExporter(app.store.snapshot, app.config.export.school_name)
    path = exporter.export_class_checklists(_export_path(app, output, "pdf"))
    console.print(f"[green]✓[/green] PDF gespeichert: {path}")


# ─── IMPORT / RESET / DEMO ────────────────────────────────────────────────────

@click.command("import")
@click.argument("datei", type=click.Path(exists=True, path_type=Path))
@click.option("--yes", "-y", is_flag=True, default=False, help="Ohne Rückfrage ersetzen.")
@click.pass_obj
def cmd_import(app: AppContext, datei: Path, yes: bool):
    """Spielt eine JSON-Datensicherung ein (ersetzt den aktuellen Stand)."""
    from data.importer import SnapshotImportError, import_from_file
    from store.actions import ImportState

    console.print(f"[bold]Importiere:[/bold] {datei}")
    try:
        snapshot, report = import_from_file(datei)
    except SnapshotImportError as e:
        console.print(f"[red bold]Import fehlgeschlagen:[/red bold]\n{e}")
        sys.exit(1)

    if not yes and not click.confirm("Aktuellen Stand ersetzen?", default=False):
        console.print("[yellow]Import abgebrochen.[/yellow]")
        return
    app.store.dispatch(ImportState(snapshot=snapshot))
    console.print("[green]✓[/green] Import erfolgreich!")
    console.print(f"\n{snapshot.summary()}")
    report.print_rich()


@click.command("reset")
@click.option("--yes", "-y", is_flag=True, default=False, help="Ohne Rückfrage löschen.")
@click.pass_obj
def cmd_reset(app: AppContext, yes: bool):
    """Löscht den kompletten Datenstand."""
    from store.actions import ResetState
    if not yes and not click.confirm("Wirklich alle Daten löschen?", default=False):
        console.print("[yellow]Abgebrochen.[/yellow]")
        return
    app.store.dispatch(ResetState())
    console.print("[green]✓[/green] Datenstand zurückgesetzt.")


@click.command("demo")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--force", is_flag=True, default=False,
              help="Auch erzeugen, wenn bereits Daten vorhanden sind.")
@click.pass_obj
def cmd_demo(app: AppContext, seed: int, force: bool):
    """Erzeugt Demo-Daten (Kurse, Bücher, Klassen, Schüler/innen)."""
    from data.demo_data import DemoDataGenerator
    if app.store.snapshot.courses and not force:
        _fail("Es sind bereits Daten vorhanden. Mit --force trotzdem ergänzen.")
    console.print("[bold]Demo-Daten werden erzeugt...[/bold]")
    applied = DemoDataGenerator(seed=seed).apply(app.store)
    console.print(f"[green]✓[/green] {applied} Aktionen angewendet.")
    console.print(f"\n[dim]{app.store.snapshot.summary()}[/dim]")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen oder anlegen."""


@cmd_config.command("show")
@click.pass_obj
def config_show(app: AppContext):
    """Zeigt die aktuelle Konfiguration an."""
    from config.manager import ConfigManager
    mgr = ConfigManager(app.config_path)
    if mgr.first_run_check():
        console.print("[dim]Keine Konfigurationsdatei – Standardwerte aktiv.[/dim]")
    mgr.show(app.config)


@cmd_config.command("init")
@click.option("--force", is_flag=True, default=False, help="Bestehende Datei überschreiben.")
@click.pass_obj
def config_init(app: AppContext, force: bool):
    """Schreibt die Konfigurationsdatei mit Standardwerten."""
    from config.defaults import default_app_config
    from config.manager import ConfigManager
    mgr = ConfigManager(app.config_path)
    if not mgr.first_run_check() and not force:
        _fail(f"Konfiguration existiert bereits: {mgr.path} (--force zum Überschreiben)")
    path = mgr.save(default_app_config())
    console.print(f"[green]✓[/green] Konfiguration gespeichert: {path}")


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Ausführliche Protokollausgabe.")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Konfigurationsdatei (Standard: config/app_config.yaml).")
@click.option("--data", "data_path", type=click.Path(path_type=Path), default=None,
              help="Datendatei (überschreibt storage.path).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Optional[Path], data_path: Optional[Path]):
    """Bücherausgabe: Pflichtbücher pro Kurs, Abgabe-Kontrolle per Barcode.

    Starten Sie mit: python main.py demo
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    ctx.obj = AppContext(config_path=config_path, data_path=data_path)


def main():
    """Einstiegspunkt. Zeigt beim ersten Aufruf ohne Argumente einen Hinweis."""
    from config.manager import ConfigManager

    if len(sys.argv) == 1 and ConfigManager().first_run_check():
        console.print(Panel(
            "[bold]Willkommen bei der Bücherausgabe![/bold]\n\n"
            "Keine Konfiguration gefunden – es gelten die Standardwerte.\n"
            "Anlegen mit [bold]python main.py config init[/bold], "
            "Demo-Daten mit [bold]python main.py demo[/bold].",
            border_style="cyan",
        ))

    cli()


# Befehle registrieren
cli.add_command(cmd_course)
cli.add_command(cmd_book)
cli.add_command(cmd_class)
cli.add_command(cmd_student)
cli.add_command(cmd_select)
cli.add_command(cmd_mark)
cli.add_command(cmd_unmark)
cli.add_command(cmd_status)
cli.add_command(cmd_scan)
cli.add_command(cmd_export)
cli.add_command(cmd_import)
cli.add_command(cmd_reset)
cli.add_command(cmd_demo)
cli.add_command(cmd_config)


if __name__ == "__main__":
    main()
