"""
visualization — Visor HTML del dataset QA.

Módulos:
- html_report: Página HTML con pestañas por source
"""

from .html_report import render_html, write_visualization

__all__ = ["render_html", "write_visualization"]
