# File: apps/matches/apps.py
# ================================================================================
from django.apps import AppConfig


class MatchesConfig(AppConfig):
    """Configuration for the matches app: single-match lookups."""

    name = "apps.matches"
    verbose_name = "Matches"
