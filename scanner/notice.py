"""Kurzlebige Hinweise an die Oberfläche (Erfolg / Fehler)."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class Notice(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    level: NoticeLevel = NoticeLevel.SUCCESS

    @classmethod
    def success(cls, text: str) -> "Notice":
        return cls(text=text, level=NoticeLevel.SUCCESS)

    @classmethod
    def error(cls, text: str) -> "Notice":
        return cls(text=text, level=NoticeLevel.ERROR)

    @property
    def is_error(self) -> bool:
        return self.level == NoticeLevel.ERROR

    def rich_markup(self) -> str:
        if self.is_error:
            return f"[red]✗[/red] {self.text}"
        return f"[green]✓[/green] {self.text}"
