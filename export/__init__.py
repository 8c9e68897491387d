"""Export-Modul: JSON, CSV, Excel (openpyxl) und PDF (fpdf2) für die Bücherausgabe."""

from export.csv_export import export_csv, report_csv
from export.excel_export import ExcelExporter
from export.helpers import build_report_rows, export_json
from export.pdf_export import PdfExporter

__all__ = [
    "ExcelExporter",
    "PdfExporter",
    "build_report_rows",
    "export_csv",
    "export_json",
    "report_csv",
]
