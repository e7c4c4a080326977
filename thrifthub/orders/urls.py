from django.urls import path
from .views import order_list, order_detail, order_stats, order_sync, shopify_test

urlpatterns = [
    path('orders/', order_list, name='order-list'),
    path('orders/stats/', order_stats, name='order-stats'),
    path('orders/sync/', order_sync, name='order-sync'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('shopify/test/', shopify_test, name='shopify-test'),
]
