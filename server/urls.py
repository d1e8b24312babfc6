"""Root URL configuration."""

from django.conf import settings
from django.conf.urls.static import static
from django.urls import include, path

urlpatterns = [
    path('', include('server.apps.videos.urls', namespace='videos')),
]

if settings.DEBUG:  # pragma: no cover
    # Production serves uploads straight from the web server
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
