"""App config for the performance module."""
from django.apps import AppConfig


class PerformanceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "performance"
    verbose_name = "Performance SDR"

    def ready(self):
        import performance.signals  # noqa: F401
