from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Shared data-access core: OpenDota client, rate limiter, cache wiring."""

    name = "apps.core"
    verbose_name = "Core"
