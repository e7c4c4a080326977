from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from thrifthub.core.utils import get_setting
from thrifthub.orders.sync import ORDERS_LAST_SYNC_KEY
from thrifthub.returns.sync import RETURNS_LAST_SYNC_KEY
from .scheduled_sync import get_sync_status


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sync_status(request):
    """State of the scheduler in this process plus the stored sync cursors"""
    data = get_sync_status()
    data['orders_last_sync'] = get_setting(ORDERS_LAST_SYNC_KEY)
    data['returns_last_sync'] = get_setting(RETURNS_LAST_SYNC_KEY)
    return Response(data)
