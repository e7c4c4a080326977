from django.urls import path
from .views import (
    customer_list_create, customer_detail,
    customer_orders, customer_email_threads, customer_repairs, customer_returns
)

urlpatterns = [
    path('customers/', customer_list_create, name='customer-list-create'),
    path('customers/<int:pk>/', customer_detail, name='customer-detail'),
    path('customers/<int:pk>/orders/', customer_orders, name='customer-orders'),
    path('customers/<int:pk>/email-threads/', customer_email_threads, name='customer-email-threads'),
    path('customers/<int:pk>/repairs/', customer_repairs, name='customer-repairs'),
    path('customers/<int:pk>/returns/', customer_returns, name='customer-returns'),
]
