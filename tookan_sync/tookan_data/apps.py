from django.apps import AppConfig


class TookanDataConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "tookan_data"
    verbose_name = "Tookan order cache"
