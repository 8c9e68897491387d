"""Datenmodell für eine Schülerin / einen Schüler (Pydantic v2)."""

from pydantic import BaseModel, ConfigDict, field_serializer


class Student(BaseModel):
    """Repräsentiert eine Schülerin / einen Schüler innerhalb einer Klasse."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    class_id: str
    delivered_isbns: frozenset[str] = frozenset()  # Bestätigt abgegebene Bücher

    @field_serializer("delivered_isbns")
    def _serialize_delivered(self, value: frozenset[str]) -> list[str]:
        # Sortiert für stabile JSON-Ausgabe
        return sorted(value)

    def has_delivered(self, isbn: str) -> bool:
        return isbn in self.delivered_isbns
