from pydantic import BaseModel, Field, field_validator
from typing import Optional


# ─── SPEICHER ───

class StorageConfig(BaseModel):
    """Ablageort des gespeicherten Datenstands."""
    # JSON-Datei mit dem kompletten Snapshot
    path: str = Field("output/buchausgabe.json",
        description="Datei für den gespeicherten Stand")


# ─── TITELSUCHE ───

class LookupConfig(BaseModel):
    """Titelsuche per ISBN beim Aufbau der Bücherlisten."""
    # Titelsuche aktiv? Ohne Suche wird immer nach dem Titel gefragt.
    enabled: bool = Field(True,
        description="Titelsuche aktiv")
    # Endpunkt der Google Books API
    endpoint: str = Field("https://www.googleapis.com/books/v1/volumes",
        description="Endpunkt der Titelsuche")
    # Genau ein Versuch; danach gilt "kein Titel gefunden"
    timeout_seconds: float = Field(8.0, ge=1, le=30,
        description="Timeout der Titelsuche (Sekunden)")


# ─── SCANNER ───

class ScannerConfig(BaseModel):
    """Entprellung und Decoder-Bibliothek."""
    # Gleicher Code wird erst nach diesem Abstand erneut angenommen
    debounce_ms: int = Field(2500, ge=0, le=60000,
        description="Sperrzeit für gleichen Code (ms)")
    # Akustisches Signal bei angenommenem Scan
    beep: bool = Field(True,
        description="Signalton bei Scan")
    # Adressen der Decoder-Bibliothek, in dieser Reihenfolge probiert
    decoder_locators: list[str] = Field(
        default=[
            "https://cdn.jsdelivr.net/npm/@zxing/browser@0.1.5/esm/index.js",
            "https://cdn.jsdelivr.net/npm/@zxing/browser@0.1.5/+esm",
            "https://esm.sh/@zxing/browser@0.1.5",
        ],
        description="Adressen der Decoder-Bibliothek (Fallback-Reihenfolge)")

    @field_validator("decoder_locators")
    @classmethod
    def _strip_empty(cls, v: list[str]) -> list[str]:
        return [u.strip() for u in v if u and u.strip()]


# ─── EXPORT ───

class ExportConfig(BaseModel):
    """Berichte und Datensicherungen."""
    # Zielordner für Exporte
    output_dir: str = Field("output",
        description="Zielordner für Exporte")
    # Erscheint im Kopf von Excel- und PDF-Berichten
    school_name: str = Field("Muster-Schule",
        description="Name der Schule (Berichtskopf)")
    # Optionaler Präfix der Dateinamen
    file_prefix: Optional[str] = Field("buecher_schueler",
        description="Präfix der Exportdateien")


# ─── GESAMT-CONFIG ───

class AppConfig(BaseModel):
    """Gesamtkonfiguration der Bücherausgabe."""
    storage: StorageConfig = Field(default_factory=StorageConfig)
    lookup: LookupConfig = Field(default_factory=LookupConfig)
    scanner: ScannerConfig = Field(default_factory=ScannerConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
