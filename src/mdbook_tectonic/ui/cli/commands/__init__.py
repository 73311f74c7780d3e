"""CLI command implementations exposed via ``mdbook_tectonic.ui.cli``."""

from __future__ import annotations

from .check import check_template
from .languages import list_languages
from .render import render


__all__ = ["check_template", "list_languages", "render"]
