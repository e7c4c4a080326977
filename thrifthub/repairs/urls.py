from django.urls import path
from .views import repair_list_create, repair_detail

urlpatterns = [
    path('repairs/', repair_list_create, name='repair-list-create'),
    path('repairs/<int:pk>/', repair_detail, name='repair-detail'),
]
