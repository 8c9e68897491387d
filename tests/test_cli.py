"""Tests für die Kommandozeile (click CliRunner, Dateien unter tmp_path)."""

import json
import threading
from pathlib import Path

import pytest
import requests
from click.testing import CliRunner

from data.storage import SnapshotStorage
from scanner.lookup import TitleLookup
from main import cli

ATLAS = "9780000000001"


class Cli:
    """Ruft die CLI mit eigener Config- und Datendatei auf."""

    def __init__(self, tmp_path: Path) -> None:
        self.config = tmp_path / "app_config.yaml"
        self.data = tmp_path / "stand.json"
        self.runner = CliRunner()

    def __call__(self, *args, input=None):
        return self.runner.invoke(
            cli, ["--config", str(self.config), "--data", str(self.data), *args],
            input=input,
        )

    @property
    def snapshot(self):
        return SnapshotStorage(self.data).load()


@pytest.fixture
def app(tmp_path: Path) -> Cli:
    return Cli(tmp_path)


@pytest.fixture
def grade5_app(app: Cli) -> Cli:
    """Kurs Grade 5, Klasse 5A, Buch Atlas, Schülerin Mara (ausgewählt)."""
    for args in (
        ("course", "add", "Grade 5"),
        ("class", "add", "5A"),
        ("book", "add", ATLAS, "Atlas"),
        ("student", "add", "Mara", "--class", "5A"),
    ):
        result = app(*args)
        assert result.exit_code == 0, result.output
    return app


# ─── VERWALTUNG ───────────────────────────────────────────────────────────────

class TestManagement:
    def test_grade5_scenario(self, grade5_app: Cli):
        """Anlegen über die CLI, Abgabe markieren, Stand ist gespeichert."""
        result = grade5_app("mark", ATLAS)
        assert result.exit_code == 0, result.output
        assert "Atlas" in result.output
        mara = grade5_app.snapshot.students[0]
        assert mara.name == "Mara"
        assert mara.delivered_isbns == frozenset({ATLAS})

    def test_mark_unknown_book_fails(self, grade5_app: Cli):
        result = grade5_app("mark", "0000000000000")
        assert result.exit_code == 1
        assert "nicht in der Liste" in result.output
        assert grade5_app.snapshot.students[0].delivered_isbns == frozenset()

    def test_unmark(self, grade5_app: Cli):
        grade5_app("mark", ATLAS)
        result = grade5_app("unmark", ATLAS)
        assert result.exit_code == 0
        assert grade5_app.snapshot.students[0].delivered_isbns == frozenset()

    def test_remove_course_in_use_fails(self, grade5_app: Cli):
        result = grade5_app("course", "remove", "Grade 5")
        assert result.exit_code == 1
        assert "Nicht möglich" in result.output
        assert len(grade5_app.snapshot.courses) == 1

    def test_unknown_name_fails(self, grade5_app: Cli):
        result = grade5_app("select", "student", "Niemand")
        assert result.exit_code == 1
        assert "nicht gefunden" in result.output

    def test_lists(self, grade5_app: Cli):
        assert "Grade 5" in grade5_app("course", "list").output
        assert "5A" in grade5_app("class", "list").output
        assert "Mara" in grade5_app("student", "list").output
        assert "Atlas" in grade5_app("course", "show").output

    def test_book_reorder(self, grade5_app: Cli):
        grade5_app("book", "add", "9780000000002", "Lesebuch")
        result = grade5_app("book", "up", "9780000000002")
        assert result.exit_code == 0
        assert grade5_app.snapshot.courses[0].isbns == ["9780000000002", ATLAS]
        result = grade5_app("book", "up", "9780000000002")
        assert "am Rand" in result.output

    def test_move_and_rename(self, grade5_app: Cli):
        grade5_app("class", "add", "5B")
        assert grade5_app("student", "move", "Mara", "5B").exit_code == 0
        assert grade5_app("student", "rename", "Mara", "Mara W.").exit_code == 0
        snapshot = grade5_app.snapshot
        assert snapshot.students[0].name == "Mara W."
        assert snapshot.class_by_id(snapshot.students[0].class_id).name == "5B"

    def test_status_shows_checklist(self, grade5_app: Cli):
        result = grade5_app("status")
        assert result.exit_code == 0
        assert "Checkliste Mara" in result.output
        assert ATLAS in result.output

    def test_book_commands_strip_isbn(self, grade5_app: Cli):
        grade5_app("book", "add", "9780000000002", "Lesebuch")
        assert grade5_app("book", "up", " 9780000000002 ").exit_code == 0
        assert grade5_app.snapshot.courses[0].isbns == ["9780000000002", ATLAS]
        result = grade5_app("book", "remove", f" {ATLAS} ")
        assert result.exit_code == 0, result.output
        assert grade5_app.snapshot.courses[0].isbns == ["9780000000002"]

    def test_book_lookup_known_isbn(self, grade5_app: Cli, monkeypatch):
        """Schon gelistete ISBN: Hinweis, keine Suche, kein "hinzugefügt"."""
        calls = []
        monkeypatch.setattr(requests, "get", lambda *a, **kw: calls.append(a))
        result = grade5_app("book", "lookup", ATLAS)
        assert result.exit_code == 0, result.output
        assert "bereits in der Liste" in result.output
        assert "hinzugefügt" not in result.output
        assert calls == []

    def test_student_add_without_class_fails(self, app: Cli):
        app("course", "add", "Grade 5")
        result = app("student", "add", "Mara")
        assert result.exit_code == 1
        assert "Keine Klasse ausgewählt" in result.output


# ─── SCAN ─────────────────────────────────────────────────────────────────────

class TestScan:
    def test_deliver(self, grade5_app: Cli):
        """Doppelte Lesung wird unterdrückt, unbekannter Code gemeldet."""
        result = grade5_app("scan", "deliver", input=f"{ATLAS}\n{ATLAS}\n0000000000000\nq\n")
        assert result.exit_code == 0, result.output
        assert result.output.count("als abgegeben markiert") == 1
        assert "nicht in der Liste" in result.output
        assert "1 doppelt" in result.output
        assert grade5_app.snapshot.students[0].delivered_isbns == frozenset({ATLAS})

    def test_deliver_without_selection_fails(self, app: Cli):
        result = app("scan", "deliver", input="q\n")
        assert result.exit_code == 1

    def test_catalog_manual_entry(self, grade5_app: Cli):
        """Ohne Titelsuche: nächste Zeile ist der Titel, leer → Ersatztitel."""
        grade5_app.config.write_text("lookup:\n  enabled: false\n", encoding="utf-8")
        result = grade5_app(
            "scan", "catalog", "--course", "Grade 5",
            input="978111\nMein Titel\n978222\n\nq\n",
        )
        assert result.exit_code == 0, result.output
        course = grade5_app.snapshot.courses[0]
        assert course.find_book("978111").title == "Mein Titel"
        assert course.find_book("978222").title == "Buch 978222"

    def test_catalog_with_lookup(self, grade5_app: Cli, monkeypatch):
        class Response:
            status_code = 200

            def json(self):
                return {"totalItems": 1, "items": [{"volumeInfo": {"title": "Physik"}}]}

        monkeypatch.setattr(requests, "get", lambda *a, **kw: Response())
        result = grade5_app("scan", "catalog", "--course", "Grade 5", input="978333\nq\n")
        assert result.exit_code == 0, result.output
        assert grade5_app.snapshot.courses[0].find_book("978333").title == "Physik"

    def test_catalog_no_manual(self, grade5_app: Cli, monkeypatch):
        def offline(*a, **kw):
            raise requests.ConnectionError("offline")

        monkeypatch.setattr(requests, "get", offline)
        result = grade5_app("scan", "catalog", "--course", "Grade 5", "--no-manual",
                            input="978444\nq\n")
        assert result.exit_code == 0, result.output
        assert grade5_app.snapshot.courses[0].find_book("978444").title == "Buch 978444"

    def test_catalog_slow_lookup_falls_back_to_manual(self, grade5_app: Cli, monkeypatch):
        """Zu langsame Titelsuche: Titel wird manuell erfragt, spätes Ergebnis verworfen."""
        release = threading.Event()

        def slow(self, isbn):
            release.wait(10)
            return "Zu spät"

        monkeypatch.setattr(TitleLookup, "find_title", slow)
        grade5_app.config.write_text("lookup:\n  timeout_seconds: 1\n", encoding="utf-8")
        try:
            result = grade5_app("scan", "catalog", "--course", "Grade 5",
                                input="978000\nHandtitel\nq\n")
        finally:
            release.set()
        assert result.exit_code == 0, result.output
        assert "dauert zu lange" in result.output
        assert grade5_app.snapshot.courses[0].find_book("978000").title == "Handtitel"

    def test_check_decoder(self, app: Cli, monkeypatch):
        calls = []

        class Response:
            content = b"export{}"

            def raise_for_status(self):
                if "jsdelivr" in calls[-1]:
                    raise requests.HTTPError("404")

        def fake_get(url, timeout=None):
            calls.append(url)
            return Response()

        monkeypatch.setattr(requests, "get", fake_get)
        result = app("scan", "check-decoder")
        assert result.exit_code == 0, result.output
        assert "esm.sh" in result.output
        assert all(not url.endswith("/+esm") for url in calls)


# ─── DATEN ────────────────────────────────────────────────────────────────────

class TestData:
    def test_export_csv(self, grade5_app: Cli, tmp_path: Path):
        out = tmp_path / "bericht.csv"
        result = grade5_app("export", "csv", "-o", str(out))
        assert result.exit_code == 0, result.output
        lines = out.read_text(encoding="utf-8-sig").splitlines()
        assert lines[0] == '"student","class","course","book_isbn","book_title","delivered"'
        assert lines[1] == f'"Mara","5A","Grade 5","{ATLAS}","Atlas","0"'

    def test_export_and_import_json(self, grade5_app: Cli, tmp_path: Path):
        backup = tmp_path / "sicherung.json"
        grade5_app("export", "json", "-o", str(backup))
        grade5_app("reset", "--yes")
        assert grade5_app.snapshot.courses == ()
        result = grade5_app("import", str(backup), "--yes")
        assert result.exit_code == 0, result.output
        assert grade5_app.snapshot.courses[0].name == "Grade 5"

    def test_import_missing_classes_keeps_state(self, grade5_app: Cli, tmp_path: Path):
        bad = tmp_path / "kaputt.json"
        bad.write_text(json.dumps({"courses": [], "students": []}), encoding="utf-8")
        before = grade5_app.snapshot
        result = grade5_app("import", str(bad), "--yes")
        assert result.exit_code == 1
        assert "classes" in result.output
        assert grade5_app.snapshot == before

    def test_reset_needs_confirmation(self, grade5_app: Cli):
        result = grade5_app("reset", input="n\n")
        assert "Abgebrochen" in result.output
        assert len(grade5_app.snapshot.courses) == 1

    def test_demo(self, app: Cli):
        result = app("demo", "--seed", "1")
        assert result.exit_code == 0, result.output
        assert len(app.snapshot.courses) == 2
        assert app("demo").exit_code == 1

    def test_export_excel_and_pdf(self, app: Cli, tmp_path: Path):
        app("demo")
        assert app("export", "excel", "-o", str(tmp_path / "b.xlsx")).exit_code == 0
        assert app("export", "pdf", "-o", str(tmp_path / "b.pdf")).exit_code == 0
        assert (tmp_path / "b.xlsx").exists()
        assert (tmp_path / "b.pdf").exists()


class TestConfigCommands:
    def test_init_and_show(self, app: Cli):
        result = app("config", "init")
        assert result.exit_code == 0, result.output
        assert app.config.exists()
        assert app("config", "init").exit_code == 1
        assert app("config", "init", "--force").exit_code == 0
        assert "debounce_ms" in app("config", "show").output
