from django.apps import AppConfig


class LogisticsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'logistics'
    verbose_name = 'Livraisons'

    def ready(self):
        # Register signals for status history and realtime events
        import logistics.signals  # noqa: F401
