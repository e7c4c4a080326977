from django.db.models import ProtectedError, Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from thrifthub.core.pagination import paginated_response
from thrifthub.core.permissions import ReadOnlyForViewer, IsStaffRole
from thrifthub.core.utils import create_audit_log, log_activity, model_changes
from .filters import PurchaseOrderFilter
from .models import Supplier, PurchaseOrder
from .serializers import SupplierSerializer, PurchaseOrderSerializer, PurchaseOrderListSerializer


def _split_items(request):
    data = request.data.copy()
    items_data = data.pop('items', None)
    return data, items_data


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def supplier_list_create(request):
    """List suppliers or create a new supplier"""
    if request.method == 'GET':
        queryset = Supplier.objects.all()
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(supplier_number__icontains=search) |
                Q(email__icontains=search)
            )
        active = request.query_params.get('is_active')
        if active in ('true', 'false'):
            queryset = queryset.filter(is_active=active == 'true')
        return paginated_response(request, queryset.order_by('name'), SupplierSerializer, default_limit=50)

    serializer = SupplierSerializer(data=request.data)
    if serializer.is_valid():
        supplier = serializer.save()
        create_audit_log(request=request, action='create', model_name='Supplier',
                         object_id=supplier.id, object_reference=supplier.supplier_number)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def supplier_detail(request, pk):
    supplier = get_object_or_404(Supplier, pk=pk)

    if request.method == 'GET':
        return Response(SupplierSerializer(supplier).data)
    elif request.method in ('PUT', 'PATCH'):
        changes = model_changes(supplier, request.data)
        serializer = SupplierSerializer(supplier, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Supplier',
                             object_id=supplier.id, object_reference=supplier.supplier_number,
                             changes=changes)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not IsStaffRole().has_permission(request, None):
            return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
        try:
            supplier.delete()
        except ProtectedError:
            return Response({'error': 'Supplier has purchase orders and cannot be deleted'},
                            status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request=request, action='delete', model_name='Supplier',
                         object_id=pk, object_reference=supplier.supplier_number)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def purchase_order_list_create(request):
    """List purchase orders or create one with its items"""
    if request.method == 'GET':
        queryset = PurchaseOrder.objects.select_related('supplier').order_by('-purchase_date', '-created_at')
        po_filter = PurchaseOrderFilter(request.query_params, queryset=queryset)
        if not po_filter.is_valid():
            return Response(po_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, po_filter.qs, PurchaseOrderListSerializer)

    data, items_data = _split_items(request)
    serializer = PurchaseOrderSerializer(data=data, context={'items_data': items_data, 'request': request})
    if serializer.is_valid():
        purchase_order = serializer.save(created_by=request.user)
        create_audit_log(request=request, action='create', model_name='PurchaseOrder',
                         object_id=purchase_order.id, object_reference=purchase_order.po_number)
        log_activity('purchase_order_created',
                     f"Purchase order {purchase_order.po_number} created: {purchase_order.title}",
                     user=request.user, metadata={'purchase_order_id': purchase_order.id})
        return Response(PurchaseOrderSerializer(purchase_order).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def purchase_order_detail(request, pk):
    """Retrieve, update or delete a purchase order"""
    purchase_order = get_object_or_404(
        PurchaseOrder.objects.select_related('supplier').prefetch_related('items'), pk=pk
    )

    if request.method == 'GET':
        return Response(PurchaseOrderSerializer(purchase_order).data)
    elif request.method in ('PUT', 'PATCH'):
        old_status = purchase_order.status
        data, items_data = _split_items(request)
        serializer = PurchaseOrderSerializer(
            purchase_order,
            data=data,
            partial=request.method == 'PATCH',
            context={'items_data': items_data, 'request': request},
        )
        if serializer.is_valid():
            purchase_order = serializer.save()
            if purchase_order.status != old_status:
                create_audit_log(request=request, action='status_change', model_name='PurchaseOrder',
                                 object_id=purchase_order.id, object_reference=purchase_order.po_number,
                                 changes={'status': {'old': old_status, 'new': purchase_order.status}})
                log_activity('purchase_order_status_updated',
                             f"Purchase order {purchase_order.po_number} moved from {old_status} to {purchase_order.status}",
                             user=request.user, metadata={'purchase_order_id': purchase_order.id})
            return Response(PurchaseOrderSerializer(purchase_order).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not IsStaffRole().has_permission(request, None):
            return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
        create_audit_log(request=request, action='delete', model_name='PurchaseOrder',
                         object_id=purchase_order.id, object_reference=purchase_order.po_number)
        log_activity('purchase_order_deleted',
                     f"Deleted purchase order: {purchase_order.title or purchase_order.po_number}",
                     user=request.user, metadata={'po_number': purchase_order.po_number})
        purchase_order.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
