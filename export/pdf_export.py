"""PDF-Export der Abgabe-Checklisten (fpdf2)."""

from pathlib import Path

from models.snapshot import Snapshot

from export.helpers import (
    COLORS, classes_with_course, hex_to_rgb, progress_color, today_str,
)


def _pdf_safe(text: str) -> str:
    """Ersetzt nicht-latin-1-fähige Zeichen für fpdf2-Built-in-Fonts."""
    text = (
        text
        .replace("\u2014", " - ")   # em dash
        .replace("\u2013", "-")      # en dash
        .replace("\u2713", "X")      # Haken
        .replace("\u201e", '"')      # Anführungszeichen unten
        .replace("\u201c", '"')      # Anführungszeichen oben
    )
    return text.encode("latin-1", "replace").decode("latin-1")


# ─── A4-Hochformat-Dimensionen ────────────────────────────────────────────────
# Portrait A4: 210 × 297 mm, Margin 10 links+rechts → 190 mm nutzbar
# Spalten: Name(60) + Bücher(je max. 16) + Stand(16)

_COL_NAME   = 60
_COL_STATUS = 16
_COL_BOOK_MAX = 16
_USABLE_W   = 190
_ROW_HEADER_H = 7    # mm
_ROW_H        = 6.5  # mm
_FONT_HEADER  = 8    # pt
_FONT_CONTENT = 8    # pt
_FONT_TINY    = 7    # pt
_PAGE_BOTTOM  = 275  # mm, danach neue Seite


class _ChecklistPdf:
    """Interner Wrapper um fpdf.FPDF für Checklisten-Seiten."""

    def __init__(self, school_name: str):
        from fpdf import FPDF

        class _Pdf(FPDF):
            def __init__(inner, sn):
                super().__init__(orientation="P", unit="mm", format="A4")
                inner._school_name = sn
                inner._entity_title = ""
                inner.alias_nb_pages()
                inner.set_auto_page_break(auto=False)
                inner.set_margins(left=10, top=22, right=10)

            def header(inner):
                inner.set_font("Helvetica", "B", 11)
                inner.set_xy(10, 8)
                inner.cell(95, 7, _pdf_safe(inner._school_name), border=0, align="L")
                inner.cell(0,  7, _pdf_safe(inner._entity_title), border=0, align="R")
                inner.ln(0)
                inner.set_draw_color(150, 150, 150)
                inner.line(10, 18, inner.w - 10, 18)

            def footer(inner):
                inner.set_y(-14)
                inner.set_font("Helvetica", "I", 7)
                inner.cell(
                    0, 8,
                    f"{today_str()}  |  Seite {inner.page_no()}/{{nb}}",
                    border=0, align="C",
                )

        self._pdf = _Pdf(school_name)

    def set_entity(self, title: str) -> None:
        self._pdf._entity_title = title

    def add_page(self) -> None:
        self._pdf.add_page()

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._pdf.output(str(path))

    def draw_cell(
        self,
        x: float, y: float,
        w: float, h: float,
        text: str = "",
        bg_hex: str | None = None,
        bold: bool = False,
        font_size: int = _FONT_CONTENT,
        text_color: tuple[int, int, int] = (0, 0, 0),
        align: str = "C",
    ) -> None:
        """Zeichnet eine Zelle mit Hintergrund, Rand und Text."""
        pdf = self._pdf

        if bg_hex:
            r, g, b = hex_to_rgb(bg_hex)
            pdf.set_fill_color(r, g, b)
            pdf.rect(x, y, w, h, style="F")

        pdf.set_draw_color(180, 180, 180)
        pdf.rect(x, y, w, h, style="D")

        if text:
            pdf.set_font("Helvetica", "B" if bold else "", font_size)
            pdf.set_text_color(*text_color)
            pdf.set_xy(x + 1, y)
            pdf.cell(w - 2, h, _pdf_safe(text), border=0, align=align)
            pdf.set_text_color(0, 0, 0)

    def write_line(self, x: float, y: float, text: str, font_size: int = _FONT_TINY) -> float:
        pdf = self._pdf
        pdf.set_font("Helvetica", "", font_size)
        pdf.set_xy(x, y)
        pdf.cell(0, 4, _pdf_safe(text), border=0, align="L")
        return y + 4


class PdfExporter:
    """Exportiert die Abgabe-Checklisten aller Klassen (eine Seite pro Klasse)."""

    def __init__(self, snapshot: Snapshot, school_name: str = ""):
        self.snapshot = snapshot
        self.school_name = school_name
        self._table_x = 10.0

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export_class_checklists(self, output_path: Path) -> Path:
        """Erzeugt eine PDF mit je einer (oder mehr) Seite(n) pro Klasse."""
        pdf = _ChecklistPdf(self.school_name or "Bücherausgabe")
        groups = classes_with_course(self.snapshot)
        if not groups:
            pdf.set_entity("Keine Klassen")
            pdf.add_page()
        for cls, course, students in groups:
            complete = sum(1 for s in students if self.snapshot.progress(s).is_complete)
            pdf.set_entity(
                f"Klasse {cls.name} - {course.name} | {complete}/{len(students)} vollständig"
            )
            pdf.add_page()
            self._draw_checklist(pdf, course, students)
        pdf.save(output_path)
        return Path(output_path)

    # ─── Tabellenzeichnung ────────────────────────────────────────────────────

    def _book_col_width(self, n_books: int) -> float:
        if n_books == 0:
            return _COL_BOOK_MAX
        return min(_COL_BOOK_MAX, (_USABLE_W - _COL_NAME - _COL_STATUS) / n_books)

    def _draw_header(self, pdf: _ChecklistPdf, y: float, n_books: int) -> float:
        x = self._table_x
        book_w = self._book_col_width(n_books)
        header_style = dict(bg_hex=COLORS["header"], bold=True,
                            font_size=_FONT_HEADER, text_color=(255, 255, 255))
        pdf.draw_cell(x, y, _COL_NAME, _ROW_HEADER_H, "Schüler/in", align="L", **header_style)
        x += _COL_NAME
        for i in range(n_books):
            pdf.draw_cell(x, y, book_w, _ROW_HEADER_H, f"B{i + 1}", **header_style)
            x += book_w
        pdf.draw_cell(x, y, _COL_STATUS, _ROW_HEADER_H, "Stand", **header_style)
        return y + _ROW_HEADER_H

    def _draw_checklist(self, pdf: _ChecklistPdf, course, students) -> None:
        """Zeichnet Legende (B1 = Titel) und Matrix Schüler/innen × Bücher."""
        y = 22.0
        for i, book in enumerate(course.books, 1):
            if y > _PAGE_BOTTOM:
                pdf.add_page()
                y = 22.0
            y = pdf.write_line(self._table_x, y, f"B{i} = {book.title} ({book.isbn})")
        y += 3

        n_books = len(course.books)
        book_w = self._book_col_width(n_books)
        y = self._draw_header(pdf, y, n_books)

        for student in students:
            if y + _ROW_H > _PAGE_BOTTOM:
                pdf.add_page()
                y = self._draw_header(pdf, 22.0, n_books)
            x = self._table_x
            pdf.draw_cell(x, y, _COL_NAME, _ROW_H, student.name, align="L")
            x += _COL_NAME
            for book in course.books:
                done = student.has_delivered(book.isbn)
                pdf.draw_cell(
                    x, y, book_w, _ROW_H, "X" if done else "",
                    bg_hex=COLORS["delivered"] if done else None,
                    bold=True,
                )
                x += book_w
            p = self.snapshot.progress(student)
            pdf.draw_cell(
                x, y, _COL_STATUS, _ROW_H, f"{p.delivered}/{p.required}",
                bg_hex=progress_color(p.delivered, p.required),
            )
            y += _ROW_H
