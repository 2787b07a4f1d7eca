"""Utilidades compartidas: JSON-Lines y logging."""
