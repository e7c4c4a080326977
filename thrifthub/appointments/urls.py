from django.urls import path
from .views import appointment_list_create, appointment_detail, appointment_export_ics

urlpatterns = [
    path('appointments/', appointment_list_create, name='appointment-list-create'),
    path('appointments/export.ics', appointment_export_ics, name='appointment-export-ics'),
    path('appointments/<int:pk>/', appointment_detail, name='appointment-detail'),
]
