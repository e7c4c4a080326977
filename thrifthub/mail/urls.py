from django.urls import path
from .views import (
    email_thread_list, email_thread_detail, email_thread_parsed, email_thread_extract,
    email_thread_bulk, email_thread_match_orders, email_sync, email_send,
    email_link_to_order, email_create_case, email_create_return, email_create_repair
)

urlpatterns = [
    path('email-threads/', email_thread_list, name='email-thread-list'),
    path('email-threads/match-orders/', email_thread_match_orders, name='email-thread-match-orders'),
    path('email-threads/bulk/<str:action>/', email_thread_bulk, name='email-thread-bulk'),
    path('email-threads/<int:pk>/', email_thread_detail, name='email-thread-detail'),
    path('email-threads/<int:pk>/parsed/', email_thread_parsed, name='email-thread-parsed'),
    path('email-threads/<int:pk>/extract/', email_thread_extract, name='email-thread-extract'),
    path('emails/sync/', email_sync, name='email-sync'),
    path('emails/send/', email_send, name='email-send'),
    path('emails/link-to-order/', email_link_to_order, name='email-link-to-order'),
    path('emails/create-case/', email_create_case, name='email-create-case'),
    path('emails/create-return/', email_create_return, name='email-create-return'),
    path('emails/create-repair/', email_create_repair, name='email-create-repair'),
]
