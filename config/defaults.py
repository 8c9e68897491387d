from config.schema import (
    AppConfig,
    ExportConfig,
    LookupConfig,
    ScannerConfig,
    StorageConfig,
)


def default_app_config() -> AppConfig:
    """Standard-Konfiguration.

    Speicher:   output/buchausgabe.json
    Titelsuche: Google Books, 8 s Timeout, ein Versuch
    Scanner:    2500 ms Sperrzeit für gleichen Code
    Export:     output/
    """
    return AppConfig(
        storage=StorageConfig(),
        lookup=LookupConfig(),
        scanner=ScannerConfig(),
        export=ExportConfig(),
    )


# Spaltennamen des CSV-Berichts
REPORT_COLUMNS: list[str] = [
    "student", "class", "course", "book_isbn", "book_title", "delivered",
]
