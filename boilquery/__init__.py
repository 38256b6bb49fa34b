"""Composable SQL query building, query mods, execution and column mapping helpers."""

__version__ = "0.1.0"

__all__ = [
    "builders",
    "execute",
    "helpers",
    "mapping",
    "qm",
    "qmhelper",
    "query",
]