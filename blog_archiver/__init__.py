"""Archiver for idol group member blogs (sakurazaka46 and the legacy keyakizaka46 diary)."""

__version__ = "0.1.0"
