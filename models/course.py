"""Datenmodell für einen Kurs mit geordneter Bücherliste (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from models.book import BookRef


class Course(BaseModel):
    """Ein Kurs (z.B. "Jahrgang 5") mit seiner Liste von Pflichtbüchern.

    Die Reihenfolge der Bücher ist die Anzeige-/Checklistenreihenfolge.
    Innerhalb eines Kurses ist jede ISBN höchstens einmal vorhanden.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    books: tuple[BookRef, ...] = ()

    def book_index(self, isbn: str) -> int:
        """Position der ISBN in der Bücherliste, -1 wenn nicht vorhanden."""
        for i, book in enumerate(self.books):
            if book.isbn == isbn:
                return i
        return -1

    def find_book(self, isbn: str) -> Optional[BookRef]:
        idx = self.book_index(isbn)
        return self.books[idx] if idx >= 0 else None

    @property
    def isbns(self) -> list[str]:
        return [b.isbn for b in self.books]
