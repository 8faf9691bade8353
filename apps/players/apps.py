from django.apps import AppConfig


class PlayersConfig(AppConfig):
    """
    App configuration for the 'players' app.
    Player routes are thin views over PlayerStatsService; there are no models.
    """

    name = "apps.players"
    verbose_name = "Players"
