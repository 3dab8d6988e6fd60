from django.apps import AppConfig


class JobConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.job"

    def ready(self) -> None:
        # Import here to avoid AppRegistryNotReady during Django startup
        import apps.job.signals  # noqa: F401
