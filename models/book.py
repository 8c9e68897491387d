"""Datenmodell für ein Pflichtbuch eines Kurses (Pydantic v2)."""

from pydantic import BaseModel, ConfigDict


def placeholder_title(isbn: str) -> str:
    """Ersatztitel, wenn kein Titel bekannt ist."""
    return f"Buch {isbn}"


class BookRef(BaseModel):
    """Ein Eintrag in der Bücherliste eines Kurses."""

    model_config = ConfigDict(frozen=True)

    isbn: str     # Barcode-Inhalt, i.d.R. ISBN-13
    title: str
