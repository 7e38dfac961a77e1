from django.apps import AppConfig


class LineageConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'lineage'

    def ready(self):
        """Validate LINE_AGE settings when the app loads."""
        from lineage.markdown.config import LineAgeOptions

        LineAgeOptions.from_settings()
