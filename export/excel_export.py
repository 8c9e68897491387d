"""Excel-Export der Bücherausgabe (openpyxl)."""

import re
from pathlib import Path

from config.defaults import REPORT_COLUMNS
from models.snapshot import Snapshot

from export.helpers import (
    COLORS, build_report_rows, classes_with_course, progress_color, today_str,
)

_INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")


def sheet_title(name: str, used: set[str]) -> str:
    """Gültiger, eindeutiger Blattname (max. 31 Zeichen)."""
    base = _INVALID_SHEET_CHARS.sub("-", name).strip() or "Klasse"
    base = base[:31]
    title = base
    n = 2
    while title.lower() in used:
        suffix = f" ({n})"
        title = base[: 31 - len(suffix)] + suffix
        n += 1
    used.add(title.lower())
    return title


class ExcelExporter:
    """Exportiert einen Snapshot in eine Excel-Datei.

    Blätter: "Übersicht" (je Klasse), "Bericht" (flache Liste), je Klasse eine Matrix.
    """

    # Spaltenbreiten (Excel-Einheiten)
    COL_NAME_W = 28
    COL_BOOK_W = 14
    COL_TEXT_W = 36

    ROW_HEADER_H = 22

    def __init__(self, snapshot: Snapshot, school_name: str = ""):
        self.snapshot = snapshot
        self.school_name = school_name

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path) -> Path:
        """Erstellt die Excel-Datei mit allen Blättern."""
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)   # Leeres Standard-Sheet entfernen

        used: set[str] = {"übersicht", "bericht"}
        self._sheet_uebersicht(wb)
        self._sheet_bericht(wb)
        for cls, course, students in classes_with_course(self.snapshot):
            self._sheet_klasse(wb, sheet_title(cls.name, used), cls.name, course, students)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        return output_path

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _center_align(self, wrap: bool = True):
        from openpyxl.styles import Alignment
        return Alignment(wrap_text=wrap, horizontal="center", vertical="center")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    def _write_header_row(self, ws, headers: list[str], row: int = 1) -> None:
        from openpyxl.styles import Font
        fill = self._fill(COLORS["header"])
        border = self._thin_border()
        for col, text in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=text)
            cell.fill = fill
            cell.font = Font(bold=True, color="FFFFFF", size=10)
            cell.alignment = self._center_align()
            cell.border = border
        ws.row_dimensions[row].height = self.ROW_HEADER_H

    # ─── Blätter ──────────────────────────────────────────────────────────────

    def _sheet_uebersicht(self, wb) -> None:
        """Je Klasse: Kurs, Anzahl Schüler/innen, vollständig, offene Bücher."""
        from openpyxl.styles import Font
        ws = wb.create_sheet("Übersicht")
        title = f"{self.school_name} – Bücherausgabe, Stand {today_str()}".lstrip(" –")
        ws.cell(row=1, column=1, value=title).font = Font(bold=True, size=12)

        headers = ["Klasse", "Kurs", "Schüler/innen", "Vollständig", "Offene Bücher"]
        self._write_header_row(ws, headers, row=3)
        border = self._thin_border()

        r = 4
        for cls, course, students in classes_with_course(self.snapshot):
            progress = [self.snapshot.progress(s) for s in students]
            complete = sum(1 for p in progress if p.is_complete)
            missing = sum(p.required - p.delivered for p in progress)
            values = [cls.name, course.name, len(students), complete, missing]
            for col, value in enumerate(values, 1):
                c = ws.cell(row=r, column=col, value=value)
                c.border = border
            ws.cell(row=r, column=4).fill = self._fill(
                progress_color(complete, len(students))
            )
            r += 1

        ws.column_dimensions["A"].width = self.COL_BOOK_W
        ws.column_dimensions["B"].width = self.COL_NAME_W
        for col in ("C", "D", "E"):
            ws.column_dimensions[col].width = self.COL_BOOK_W

    def _sheet_bericht(self, wb) -> None:
        """Flache Liste wie der CSV-Bericht."""
        from openpyxl.utils import get_column_letter
        ws = wb.create_sheet("Bericht")
        self._write_header_row(ws, REPORT_COLUMNS)
        for r, row in enumerate(build_report_rows(self.snapshot), 2):
            values = row.as_list()
            values[-1] = int(values[-1])
            for col, value in enumerate(values, 1):
                ws.cell(row=r, column=col, value=value)
        widths = [self.COL_NAME_W, self.COL_BOOK_W, self.COL_NAME_W,
                  self.COL_BOOK_W + 4, self.COL_TEXT_W, self.COL_BOOK_W]
        for col, w in enumerate(widths, 1):
            ws.column_dimensions[get_column_letter(col)].width = w
        ws.freeze_panes = "A2"

    def _sheet_klasse(self, wb, title: str, class_name: str, course, students) -> None:
        """Matrix Schüler/innen × Bücher, abgegeben grün, offen rot."""
        from openpyxl.styles import Font
        from openpyxl.utils import get_column_letter
        ws = wb.create_sheet(title)
        headers = ["Schüler/in"] + [b.title for b in course.books] + ["Stand"]
        self._write_header_row(ws, headers)
        border = self._thin_border()

        for r, student in enumerate(students, 2):
            c = ws.cell(row=r, column=1, value=student.name)
            c.border = border
            c.font = Font(bold=True, size=10)
            for col, book in enumerate(course.books, 2):
                done = student.has_delivered(book.isbn)
                c = ws.cell(row=r, column=col, value="✓" if done else "")
                c.fill = self._fill(COLORS["delivered"] if done else COLORS["missing"])
                c.alignment = self._center_align(wrap=False)
                c.border = border
            p = self.snapshot.progress(student)
            c = ws.cell(row=r, column=len(course.books) + 2, value=f"{p.delivered}/{p.required}")
            c.fill = self._fill(progress_color(p.delivered, p.required))
            c.alignment = self._center_align(wrap=False)
            c.border = border

        ws.column_dimensions["A"].width = self.COL_NAME_W
        for col in range(2, len(course.books) + 3):
            ws.column_dimensions[get_column_letter(col)].width = self.COL_BOOK_W
        ws.freeze_panes = "B2"
        ws.sheet_properties.tabColor = COLORS["header"]
        ws.oddHeader.center.text = f"{class_name} – {course.name}"
