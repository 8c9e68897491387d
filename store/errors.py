"""Fehlerklassen des Zustands-Kerns."""


class StoreError(Exception):
    """Basisklasse für alle Fehler beim Verarbeiten von Aktionen."""


class IntegrityError(StoreError):
    """Aktion würde Klassen oder Schüler/innen verwaisen lassen."""
