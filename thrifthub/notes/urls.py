from django.urls import path
from .views import note_list_for_entity, note_create, note_detail, note_pin

urlpatterns = [
    path('notes/', note_create, name='note-create'),
    path('notes/<int:pk>/', note_detail, name='note-detail'),
    path('notes/<int:pk>/pin/', note_pin, name='note-pin'),
    path('notes/<str:entity_type>/<int:entity_id>/', note_list_for_entity, name='note-list-for-entity'),
]
