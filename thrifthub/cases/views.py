from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.utils import timezone

from thrifthub.core.pagination import paginated_response
from thrifthub.core.permissions import ReadOnlyForViewer, IsStaffRole
from thrifthub.core.utils import create_audit_log, log_activity
from .filters import CaseFilter
from .models import Case, CaseLink
from .serializers import CaseSerializer, CaseLinkSerializer
from .services import create_case, apply_status_timestamps, link_case


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def case_list_create(request):
    """List cases (unarchived by default) or create a new case"""
    if request.method == 'GET':
        params = request.query_params.copy()
        params.setdefault('archived', 'false')
        queryset = Case.objects.select_related('customer', 'assigned_user').prefetch_related('links')
        case_filter = CaseFilter(params, queryset=queryset.order_by('-created_at'))
        if not case_filter.is_valid():
            return Response(case_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, case_filter.qs, CaseSerializer)

    serializer = CaseSerializer(data=request.data)
    if serializer.is_valid():
        case = create_case(created_by=request.user, **serializer.validated_data)
        create_audit_log(request=request, action='create', model_name='Case',
                         object_id=case.id, object_reference=case.case_number)
        log_activity('case_created', f"Case {case.case_number} created: {case.title}",
                     user=request.user, metadata={'case_id': case.id})
        return Response(CaseSerializer(case).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def case_detail(request, pk):
    """Retrieve, update or delete a case"""
    case = get_object_or_404(Case, pk=pk)

    if request.method == 'GET':
        return Response(CaseSerializer(case).data)
    elif request.method in ('PUT', 'PATCH'):
        old_status = case.status
        serializer = CaseSerializer(case, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            case = serializer.save()
            if case.status != old_status:
                apply_status_timestamps(case, old_status)
                case.save(update_fields=['resolved_at', 'closed_at', 'updated_at'])
                create_audit_log(request=request, action='status_change', model_name='Case',
                                 object_id=case.id, object_reference=case.case_number,
                                 changes={'status': {'old': old_status, 'new': case.status}})
                log_activity('case_status_updated',
                             f"Case {case.case_number} moved from {old_status} to {case.status}",
                             user=request.user, metadata={'case_id': case.id})
            return Response(CaseSerializer(case).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not IsStaffRole().has_permission(request, None):
            return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
        create_audit_log(request=request, action='delete', model_name='Case',
                         object_id=case.id, object_reference=case.case_number)
        case.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def case_archive(request, pk):
    case = get_object_or_404(Case, pk=pk)
    case.archived = True
    case.archived_at = timezone.now()
    case.save(update_fields=['archived', 'archived_at', 'updated_at'])
    create_audit_log(request=request, action='update', model_name='Case',
                     object_id=case.id, object_reference=case.case_number,
                     changes={'archived': {'old': 'False', 'new': 'True'}})
    return Response(CaseSerializer(case).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def case_unarchive(request, pk):
    case = get_object_or_404(Case, pk=pk)
    case.archived = False
    case.archived_at = None
    case.save(update_fields=['archived', 'archived_at', 'updated_at'])
    create_audit_log(request=request, action='update', model_name='Case',
                     object_id=case.id, object_reference=case.case_number,
                     changes={'archived': {'old': 'True', 'new': 'False'}})
    return Response(CaseSerializer(case).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def case_link_list_create(request, pk):
    """List or add links from a case to other records"""
    case = get_object_or_404(Case, pk=pk)

    if request.method == 'GET':
        return Response(CaseLinkSerializer(case.links.all(), many=True).data)

    serializer = CaseLinkSerializer(data=request.data)
    if serializer.is_valid():
        link = link_case(case, serializer.validated_data['link_type'],
                         serializer.validated_data['linked_id'], user=request.user)
        create_audit_log(request=request, action='link', model_name='Case',
                         object_id=case.id, object_reference=case.case_number,
                         changes={'link_type': link.link_type, 'linked_id': link.linked_id})
        return Response(CaseLinkSerializer(link).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def case_link_delete(request, pk, link_id):
    link = get_object_or_404(CaseLink, pk=link_id, case_id=pk)
    create_audit_log(request=request, action='unlink', model_name='Case',
                     object_id=pk, object_reference=link.case.case_number,
                     changes={'link_type': link.link_type, 'linked_id': link.linked_id})
    link.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def case_from_email(request, thread_id):
    """Create a case from an email thread and link them"""
    from thrifthub.mail.actions import create_case_from_thread
    from thrifthub.mail.models import EmailThread

    thread = get_object_or_404(EmailThread, pk=thread_id)
    case = create_case_from_thread(thread, request.user, request.data)
    create_audit_log(request=request, action='create', model_name='Case',
                     object_id=case.id, object_reference=case.case_number,
                     changes={'email_thread': thread.id})
    return Response(CaseSerializer(case).data, status=status.HTTP_201_CREATED)
