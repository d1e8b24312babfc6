"""URL routes for videos app."""

from django.urls import path

from server.apps.videos import views

app_name = 'videos'

urlpatterns = [
    path('', views.index, name='index'),
    path('upload/', views.upload, name='upload'),
    path('download/', views.download, name='download'),
    path('preview/', views.preview, name='preview'),
    path('metadata.json', views.listing, name='listing'),
]
