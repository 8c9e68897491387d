"""Datenmodell für eine Schulklasse (Pydantic v2)."""

from pydantic import BaseModel, ConfigDict


class SchoolClass(BaseModel):
    """Eine Klasse (z.B. "5A"), gebunden an genau einen Kurs."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    course_id: str   # Kurs, dessen Bücherliste für die Klasse gilt
