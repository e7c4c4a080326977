from django.urls import path
from .views import (
    case_list_create, case_detail, case_archive, case_unarchive,
    case_link_list_create, case_link_delete, case_from_email
)

urlpatterns = [
    path('cases/', case_list_create, name='case-list-create'),
    path('cases/from-email/<int:thread_id>/', case_from_email, name='case-from-email'),
    path('cases/<int:pk>/', case_detail, name='case-detail'),
    path('cases/<int:pk>/archive/', case_archive, name='case-archive'),
    path('cases/<int:pk>/unarchive/', case_unarchive, name='case-unarchive'),
    path('cases/<int:pk>/links/', case_link_list_create, name='case-link-list-create'),
    path('cases/<int:pk>/links/<int:link_id>/', case_link_delete, name='case-link-delete'),
]
