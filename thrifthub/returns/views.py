import json
import logging

from django.conf import settings
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response

from thrifthub.core.pagination import paginated_response
from thrifthub.core.permissions import ReadOnlyForViewer, IsStaffRole
from thrifthub.core.utils import create_audit_log, log_activity
from thrifthub.orders.shopify import ShopifyAPIError
from .filters import ReturnFilter
from .models import Return, ReturnItem
from .serializers import ReturnSerializer, ReturnListSerializer, ReturnItemSerializer
from .services import apply_status_dates, create_return_with_items
from .sync import sync_shopify_returns
from .webhooks import (
    validate_shopify_webhook, get_webhook_topic, get_webhook_shop,
    return_gid_from_payload, process_return_webhook, HMAC_HEADER
)

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def return_list_create(request):
    """List returns or create a new return with items"""
    if request.method == 'GET':
        queryset = Return.objects.select_related('customer', 'order', 'assigned_user').order_by('-created_at')
        return_filter = ReturnFilter(request.query_params, queryset=queryset)
        if not return_filter.is_valid():
            return Response(return_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, return_filter.qs, ReturnListSerializer)

    serializer = ReturnSerializer(data=request.data)
    if serializer.is_valid():
        return_request = serializer.save(created_by=request.user)
        create_audit_log(request=request, action='create', model_name='Return',
                         object_id=return_request.id, object_reference=return_request.return_number)
        log_activity('return_created', f"Return {return_request.return_number} created",
                     user=request.user, metadata={'return_id': return_request.id})
        return Response(ReturnSerializer(return_request).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def return_detail(request, pk):
    """Retrieve, update or delete a return"""
    return_request = get_object_or_404(
        Return.objects.select_related('customer', 'order').prefetch_related('items'), pk=pk
    )

    if request.method == 'GET':
        return Response(ReturnSerializer(return_request).data)
    elif request.method in ('PUT', 'PATCH'):
        old_status = return_request.status
        serializer = ReturnSerializer(return_request, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            return_request = serializer.save()
            if return_request.status != old_status:
                stamped = apply_status_dates(return_request, old_status)
                if stamped:
                    return_request.save(update_fields=stamped + ['updated_at'])
                create_audit_log(request=request, action='status_change', model_name='Return',
                                 object_id=return_request.id, object_reference=return_request.return_number,
                                 changes={'status': {'old': old_status, 'new': return_request.status}})
                log_activity('return_status_updated',
                             f"Return {return_request.return_number} moved from {old_status} to {return_request.status}",
                             user=request.user,
                             metadata={'return_id': return_request.id, 'old_status': old_status,
                                       'new_status': return_request.status})
            return Response(ReturnSerializer(return_request).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not IsStaffRole().has_permission(request, None):
            return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
        create_audit_log(request=request, action='delete', model_name='Return',
                         object_id=return_request.id, object_reference=return_request.return_number)
        return_request.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def return_item_list_create(request, pk):
    """List or add items on a return"""
    return_request = get_object_or_404(Return, pk=pk)

    if request.method == 'GET':
        return Response(ReturnItemSerializer(return_request.items.all(), many=True).data)

    serializer = ReturnItemSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(return_request=return_request)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def return_item_detail(request, pk):
    item = get_object_or_404(ReturnItem, pk=pk)

    if request.method == 'GET':
        return Response(ReturnItemSerializer(item).data)
    elif request.method == 'PATCH':
        serializer = ReturnItemSerializer(item, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        item.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def return_from_case(request, case_id):
    """Create a return for a case and link it to the case"""
    from thrifthub.cases.models import Case
    from thrifthub.cases.services import link_case

    case = get_object_or_404(Case, pk=case_id)
    serializer = ReturnSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = dict(serializer.validated_data)
    items = data.pop('items', [])
    data['case'] = case
    data.setdefault('customer', case.customer)
    if data.get('order') and not data.get('customer'):
        data['customer'] = data['order'].customer
    data['created_by'] = request.user

    return_request = create_return_with_items(data, items)
    link_case(case, 'return', return_request.id, user=request.user)
    create_audit_log(request=request, action='create', model_name='Return',
                     object_id=return_request.id, object_reference=return_request.return_number,
                     changes={'case': case.case_number})
    return Response(ReturnSerializer(return_request).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def return_sync(request):
    """Run a Shopify returns sync now"""
    try:
        summary = sync_shopify_returns()
    except ShopifyAPIError as e:
        logger.error(f"Manual returns sync failed: {e}")
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

    create_audit_log(request=request, action='sync', model_name='Return',
                     object_id='shopify', changes=summary)
    return Response(summary)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def shopify_returns_webhook(request):
    """Shopify returns webhook; authenticated by HMAC signature"""
    raw_body = request.body
    secret = settings.SHOPIFY_WEBHOOK_SECRET
    if not secret:
        logger.error("SHOPIFY_WEBHOOK_SECRET not configured")
        return Response({'error': 'Webhook secret not configured'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    topic = get_webhook_topic(request)
    shop = get_webhook_shop(request)
    logger.info(f"Received Shopify webhook topic={topic} shop={shop}")

    if not validate_shopify_webhook(raw_body, request.META.get(HMAC_HEADER), secret):
        return Response({'error': 'Invalid signature'}, status=status.HTTP_401_UNAUTHORIZED)

    try:
        payload = json.loads(raw_body.decode('utf-8'))
    except (ValueError, UnicodeDecodeError):
        return Response({'error': 'Invalid JSON payload'}, status=status.HTTP_400_BAD_REQUEST)
    if not isinstance(payload, dict):
        return Response({'error': 'Payload must be a JSON object'}, status=status.HTTP_400_BAD_REQUEST)

    return_gid = return_gid_from_payload(payload)
    if not return_gid:
        return Response({'error': 'Payload has no return id'}, status=status.HTTP_400_BAD_REQUEST)

    result = process_return_webhook(return_gid)
    if not result['success']:
        logger.error(f"Webhook processing failed: {result.get('error')}")
    return Response({'received': True, **result})
