from django.urls import path
from .views import (
    return_list_create, return_detail, return_item_list_create, return_item_detail,
    return_from_case, return_sync, shopify_returns_webhook
)

urlpatterns = [
    path('returns/', return_list_create, name='return-list-create'),
    path('returns/sync/', return_sync, name='return-sync'),
    path('returns/from-case/<int:case_id>/', return_from_case, name='return-from-case'),
    path('returns/<int:pk>/', return_detail, name='return-detail'),
    path('returns/<int:pk>/items/', return_item_list_create, name='return-item-list-create'),
    path('return-items/<int:pk>/', return_item_detail, name='return-item-detail'),
    path('shopify/webhooks/returns/', shopify_returns_webhook, name='shopify-returns-webhook'),
]
