"""Konfigurationsmanager: Laden, Speichern und Anzeigen der Konfiguration.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren.
"""

import json
from datetime import date
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich import box
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.defaults import default_app_config
from config.schema import AppConfig

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML-KOMMENTAR-AUFBAU ───

_YAML_HEADER = f"""\
# ============================================
# Bücherausgabe — Konfiguration
# Erstellt: {date.today().isoformat()}
# ============================================
"""

_SECTION_COMMENTS = {
    "storage": (
        "Speicher",
        "Kompletter Datenstand als eine JSON-Datei.",
    ),
    "lookup": (
        "Titelsuche",
        "Ein Versuch pro ISBN; ohne Treffer wird der Titel manuell erfragt.",
    ),
    "scanner": (
        "Scanner",
        "Gleicher Code wird erst nach debounce_ms erneut angenommen.",
    ),
    "export": (
        "Export",
        None,
    ),
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "app_config.yaml"

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else self.DEFAULT_CONFIG

    def first_run_check(self) -> bool:
        """Gibt True zurück wenn noch keine Config existiert (Erstaufruf)."""
        return not self.path.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> AppConfig:
        """Lade Config aus YAML; fehlt die Datei, gelten die Standardwerte."""
        target = Path(path) if path is not None else self.path
        if not target.exists():
            return default_app_config()
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            return AppConfig.model_validate(dict(raw or {}))
        except Exception as e:
            raise ValueError(
                f"Konfigurationsdatei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e

    # ─── Speichern ───

    def save(self, config: AppConfig, path: Optional[Path] = None) -> Path:
        """Speichere Config als YAML mit Kommentaren."""
        target = Path(path) if path is not None else self.path
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(config)

        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(data, f)
        return target

    def _build_commented_yaml(self, config: AppConfig) -> CommentedMap:
        """Baut die YAML-Struktur mit Kommentaren auf."""
        raw = json.loads(config.model_dump_json())
        cm = CommentedMap(raw)

        for field, (label, comment) in _SECTION_COMMENTS.items():
            cm.yaml_set_comment_before_after_key(
                field,
                before=f"\n─── {label} ───" + (f"\n{comment}" if comment else ""),
            )

        if "lookup" in cm:
            lookup_map = CommentedMap(cm["lookup"])
            lookup_map.yaml_add_eol_comment("Sekunden", "timeout_seconds")
            cm["lookup"] = lookup_map

        return cm

    # ─── Anzeige ───

    def show(self, config: AppConfig) -> None:
        """Zeigt die Konfiguration als rich-Tabelle an."""
        table = Table(title=f"Konfiguration ({self.path})", box=box.ROUNDED)
        table.add_column("Bereich", style="bold")
        table.add_column("Parameter")
        table.add_column("Wert")
        for section, values in config.model_dump().items():
            for key, value in values.items():
                if isinstance(value, list):
                    value = "\n".join(str(v) for v in value)
                table.add_row(section, key, str(value))
                section = ""
        console.print(table)
