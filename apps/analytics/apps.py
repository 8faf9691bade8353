from django.apps import AppConfig


class AnalyticsConfig(AppConfig):
    """App configuration for the 'analytics' app. It owns no models."""

    name = "apps.analytics"
    verbose_name = "Analytics"
