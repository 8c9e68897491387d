"""CSV-Export des Abgabe-Berichts."""

import csv
import io
from pathlib import Path

from config.defaults import REPORT_COLUMNS
from export.helpers import build_report_rows
from models.snapshot import Snapshot


def report_csv(snapshot: Snapshot) -> str:
    """Bericht als CSV-Text (alle Felder in Anführungszeichen)."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(REPORT_COLUMNS)
    for row in build_report_rows(snapshot):
        writer.writerow(row.as_list())
    return buf.getvalue()


def export_csv(snapshot: Snapshot, path: Path) -> Path:
    """Schreibt den Bericht als UTF-8-CSV (mit BOM, damit Excel Umlaute erkennt)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8-sig", newline="") as f:
        f.write(report_csv(snapshot))
    return path
