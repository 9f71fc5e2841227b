from django.apps import AppConfig


class WholesalersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'wholesalers'
