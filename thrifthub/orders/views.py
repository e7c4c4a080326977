import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Count, Sum
from django.shortcuts import get_object_or_404

from thrifthub.core.cache_utils import get_cached_order_stats, cache_order_stats
from thrifthub.core.pagination import paginated_response
from thrifthub.core.permissions import IsStaffRole
from thrifthub.core.utils import create_audit_log
from .filters import OrderFilter
from .models import Order
from .serializers import OrderListSerializer, OrderSerializer
from .shopify import ShopifyClient, ShopifyAPIError
from .sync import sync_shopify_orders

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_list(request):
    """List orders with search, status and date filters"""
    queryset = Order.objects.select_related('customer').order_by('-order_date', '-created_at')
    order_filter = OrderFilter(request.query_params, queryset=queryset)
    if not order_filter.is_valid():
        return Response(order_filter.errors, status=status.HTTP_400_BAD_REQUEST)
    return paginated_response(request, order_filter.qs, OrderListSerializer)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    """Retrieve an order, or update its local status"""
    order = get_object_or_404(Order.objects.select_related('customer'), pk=pk)

    if request.method == 'GET':
        return Response(OrderSerializer(order).data)

    if not IsStaffRole().has_permission(request, None):
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    old_status = order.status
    serializer = OrderSerializer(order, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        if order.status != old_status:
            create_audit_log(request=request, action='status_change', model_name='Order',
                             object_id=order.id, object_reference=order.order_number,
                             changes={'status': {'old': old_status, 'new': order.status}})
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_stats(request):
    """Order counts per status and total amount"""
    cached = get_cached_order_stats()
    if cached is not None:
        return Response(cached)

    totals = Order.objects.aggregate(total=Count('id'), total_amount=Sum('total_amount'))
    stats = {
        'total': totals['total'] or 0,
        'total_amount': totals['total_amount'] or 0,
    }
    for status_value, _ in Order.STATUS_CHOICES:
        stats[status_value] = 0
    for row in Order.objects.values('status').annotate(count=Count('id')):
        stats[row['status']] = row['count']

    cache_order_stats(stats)
    return Response(stats)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def order_sync(request):
    """Run an incremental Shopify orders sync now"""
    try:
        summary = sync_shopify_orders()
    except ShopifyAPIError as e:
        logger.error(f"Manual orders sync failed: {e}")
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

    create_audit_log(request=request, action='sync', model_name='Order',
                     object_id='shopify', changes=summary)
    return Response(summary)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def shopify_test(request):
    """Check that the configured Shopify credentials work"""
    client = ShopifyClient()
    if not client.is_configured:
        return Response({'connected': False, 'error': 'Shopify credentials are not configured'},
                        status=status.HTTP_400_BAD_REQUEST)
    try:
        shop = client.get_shop()
    except ShopifyAPIError as e:
        return Response({'connected': False, 'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)
    return Response({'connected': True, 'shop': shop.get('name'), 'domain': shop.get('myshopify_domain')})
