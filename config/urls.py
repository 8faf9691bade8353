"""
Main URL configuration. Every route is an async view under /api/v1/.
"""

from django.urls import include, path

# -----------------------------------------------------------------
# API URL Patterns
# -----------------------------------------------------------------
api_v1_patterns = [
    path("heroes", include("apps.core.urls")),
    path("matches", include("apps.matches.urls")),
    path("players", include("apps.players.urls")),
]

# -----------------------------------------------------------------
# Main URL Patterns
# -----------------------------------------------------------------
urlpatterns = [
    path("api/v1/", include(api_v1_patterns)),
]

# --- Global Error Handlers for API ---
# Unmatched URLs and unhandled errors return the JSON error envelope.
handler404 = "apps.core.views.custom_handler.json_404_handler"
handler500 = "apps.core.views.custom_handler.json_500_handler"
