from django.urls import path
from .views import sync_status

urlpatterns = [
    path('sync/status/', sync_status, name='sync-status'),
]
