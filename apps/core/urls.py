from __future__ import annotations

from typing import TYPE_CHECKING

from django.urls import path

from apps.core.views.heroes import HeroCatalogView

if TYPE_CHECKING:
    from django.urls.resolvers import URLPattern

app_name = "heroes"

urlpatterns: list[URLPattern] = [
    path("", HeroCatalogView.as_view(), name="hero-catalog"),
]
