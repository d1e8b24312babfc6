"""Django app configuration for videos app."""

from django.apps import AppConfig


class VideosConfig(AppConfig):
    """Configuration for videos app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'server.apps.videos'
    verbose_name = 'Videos'
