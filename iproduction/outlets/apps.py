from django.apps import AppConfig


class OutletsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'iproduction.outlets'
