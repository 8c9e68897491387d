"""Auswahl-Cursor der Oberfläche (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Selection(BaseModel):
    """Aktueller Fokus: Kurs → Klasse → Schüler/in.

    Die Auswahl ist streng hierarchisch: eine Klassen- oder Schülerauswahl
    zeigt nie auf ein Kind eines nicht ausgewählten Elternteils.
    """

    model_config = ConfigDict(frozen=True)

    course_id: Optional[str] = None
    class_id: Optional[str] = None
    student_id: Optional[str] = None
