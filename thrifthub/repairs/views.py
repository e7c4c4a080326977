from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404

from thrifthub.core.pagination import paginated_response
from thrifthub.core.permissions import CanManageRepairs, IsStaffRole
from thrifthub.core.utils import create_audit_log, log_activity
from .models import Repair
from .serializers import RepairSerializer
from .services import create_repair


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanManageRepairs])
def repair_list_create(request):
    """List repairs or create a new repair"""
    if request.method == 'GET':
        queryset = Repair.objects.select_related('assigned_user', 'order').order_by('-created_at')

        status_filter = request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        assigned_user = request.query_params.get('assigned_user')
        if assigned_user == 'me':
            queryset = queryset.filter(assigned_user=request.user)
        elif assigned_user:
            queryset = queryset.filter(assigned_user_id=assigned_user)

        priority = request.query_params.get('priority')
        if priority:
            queryset = queryset.filter(priority=priority)

        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(title__icontains=search) |
                Q(description__icontains=search) |
                Q(customer_name__icontains=search) |
                Q(customer_email__icontains=search) |
                Q(serial_number__icontains=search)
            )
        return paginated_response(request, queryset, RepairSerializer)

    serializer = RepairSerializer(data=request.data)
    if serializer.is_valid():
        repair = create_repair(user=request.user, **serializer.validated_data)
        create_audit_log(request=request, action='create', model_name='Repair',
                         object_id=repair.id, object_reference=repair.title)
        log_activity('repair_created', f"Repair created: {repair.title}",
                     user=request.user, metadata={'repair_id': repair.id})
        return Response(RepairSerializer(repair).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanManageRepairs])
def repair_detail(request, pk):
    """Retrieve, update or delete a repair"""
    repair = get_object_or_404(Repair, pk=pk)

    if request.method == 'GET':
        return Response(RepairSerializer(repair).data)
    elif request.method in ('PUT', 'PATCH'):
        old_status = repair.status
        serializer = RepairSerializer(repair, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            repair = serializer.save()
            if repair.status != old_status:
                repair.record_status(repair.status, user=request.user)
                repair.save(update_fields=['timeline', 'completed_at', 'updated_at'])
                create_audit_log(request=request, action='status_change', model_name='Repair',
                                 object_id=repair.id, object_reference=repair.title,
                                 changes={'status': {'old': old_status, 'new': repair.status}})
                log_activity('repair_status_updated',
                             f"Repair \"{repair.title}\" moved from {old_status} to {repair.status}",
                             user=request.user,
                             metadata={'repair_id': repair.id, 'old_status': old_status,
                                       'new_status': repair.status})
            return Response(RepairSerializer(repair).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not IsStaffRole().has_permission(request, None):
            return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
        create_audit_log(request=request, action='delete', model_name='Repair',
                         object_id=repair.id, object_reference=repair.title)
        repair.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
