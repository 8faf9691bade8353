"""
apps.core.views
---------------

Package initialiser.

Makes the main endpoints directly importable via:

    from apps.core.views import health_check, HeroCatalogView
"""

from __future__ import annotations

from .custom_handler import json_404_handler, json_500_handler
from .health import health_check
from .heroes import HeroCatalogView

__all__: list[str] = [
    "HeroCatalogView",
    "health_check",
    "json_404_handler",
    "json_500_handler",
]
