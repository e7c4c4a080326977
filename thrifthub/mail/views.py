import logging

from django.db.models import Count
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from thrifthub.core.pagination import paginated_response
from thrifthub.core.permissions import ReadOnlyForViewer, IsStaffRole, CanManageRepairs
from thrifthub.core.utils import create_audit_log, log_activity
from thrifthub.orders.matching import OrderMatcher
from thrifthub.orders.models import Order
from thrifthub.orders.serializers import OrderListSerializer
from thrifthub.cases.serializers import CaseSerializer
from thrifthub.repairs.serializers import RepairSerializer
from thrifthub.returns.serializers import ReturnSerializer
from .actions import (
    create_case_from_thread, create_return_from_thread, create_repair_from_thread,
    link_thread_to_order, first_inbound_message, message_text
)
from .content_parser import extract_customer_info, extract_order_number, extract_product_info
from .filters import EmailThreadFilter
from .imap_sync import incremental_email_sync
from .models import EmailThread
from .sender import send_reply, EmailSendError
from .serializers import (
    EmailThreadListSerializer, EmailThreadSerializer, EmailMessageSerializer, SendEmailSerializer
)
from .thread_parser import parse_email_thread

logger = logging.getLogger(__name__)

BULK_UPDATES = {
    'mark-read': {'is_unread': False},
    'mark-unread': {'is_unread': True},
    'star': {'is_starred': True},
    'unstar': {'is_starred': False},
    'archive': {'status': 'archived'},
    'unarchive': {'status': 'open'},
}


def _thread_from_body(request):
    thread_id = request.data.get('thread_id')
    if not thread_id:
        return None, Response({'error': 'thread_id is required'}, status=status.HTTP_400_BAD_REQUEST)
    return get_object_or_404(EmailThread, pk=thread_id), None


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def email_thread_list(request):
    """List email threads, most recently active first"""
    queryset = (
        EmailThread.objects.select_related('assigned_user', 'order', 'case')
        .annotate(message_count=Count('messages'))
        .order_by('-last_activity', '-created_at')
    )
    thread_filter = EmailThreadFilter(request.query_params, queryset=queryset)
    if not thread_filter.is_valid():
        return Response(thread_filter.errors, status=status.HTTP_400_BAD_REQUEST)
    return paginated_response(request, thread_filter.qs, EmailThreadListSerializer)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def email_thread_detail(request, pk):
    """Retrieve a thread with its messages, or update its flags and links"""
    thread = get_object_or_404(EmailThread.objects.prefetch_related('messages__attachments'), pk=pk)

    if request.method == 'GET':
        return Response(EmailThreadSerializer(thread).data)

    serializer = EmailThreadListSerializer(thread, data=request.data, partial=True)
    if serializer.is_valid():
        old_status = thread.status
        thread = serializer.save()
        if thread.status != old_status:
            create_audit_log(request=request, action='status_change', model_name='EmailThread',
                             object_id=thread.id, object_reference=thread.subject[:100],
                             changes={'status': {'old': old_status, 'new': thread.status}})
        return Response(EmailThreadSerializer(thread).data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def email_thread_parsed(request, pk):
    """Stored messages split into the quoted messages they contain"""
    thread = get_object_or_404(EmailThread, pk=pk)
    results = []
    for message in thread.messages.order_by('sent_at', 'created_at'):
        parts = parse_email_thread(message.body, message.is_html, message.from_email)
        results.append({
            'message': EmailMessageSerializer(message).data,
            'parsed': [part.to_dict() for part in parts],
        })
    return Response(results)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def email_thread_extract(request, pk):
    """Customer details and order hints found in the first customer message"""
    thread = get_object_or_404(EmailThread, pk=pk)
    message = first_inbound_message(thread)
    text = message_text(message)
    from_email = message.from_email if message else thread.customer_email

    order_number = extract_order_number(f"{thread.subject}\n{text}")
    matched = OrderMatcher().match_orders(text, thread.customer_email, thread.subject)

    return Response({
        'customer': extract_customer_info(text, from_email),
        'product': extract_product_info(text),
        'order_number': order_number,
        'match_method': matched.match_method,
        'matched_order': OrderListSerializer(matched.primary_match).data if matched.primary_match else None,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def email_thread_bulk(request, action):
    """Apply one action to many threads: {"ids": [...]}"""
    ids = request.data.get('ids') or []
    if not isinstance(ids, list) or not ids:
        return Response({'error': 'ids must be a non-empty list'}, status=status.HTTP_400_BAD_REQUEST)

    threads = EmailThread.objects.filter(pk__in=ids)
    if action == 'delete':
        if not IsStaffRole().has_permission(request, None):
            return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
        count = threads.count()
        threads.delete()
        create_audit_log(request=request, action='delete', model_name='EmailThread',
                         object_id=','.join(str(i) for i in ids), changes={'count': count})
        return Response({'action': action, 'updated': count})

    if action not in BULK_UPDATES:
        return Response({'error': f'Unknown action: {action}'}, status=status.HTTP_400_BAD_REQUEST)

    count = threads.update(**BULK_UPDATES[action])
    return Response({'action': action, 'updated': count})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def email_thread_match_orders(request):
    """Try to auto-link every thread that has no order yet"""
    matcher = OrderMatcher()
    processed = 0
    matched = 0
    for thread in EmailThread.objects.filter(order__isnull=True):
        processed += 1
        text = message_text(first_inbound_message(thread))
        order = matcher.get_order_for_auto_link(text, thread.customer_email, thread.subject)
        if order is not None:
            link_thread_to_order(thread, order)
            matched += 1

    logger.info(f"Order matching linked {matched} of {processed} thread(s)")
    return Response({
        'processed': processed,
        'matched': matched,
        'message': f"Linked {matched} of {processed} thread(s) to an order",
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def email_sync(request):
    """Fetch new mail from the IMAP mailbox now"""
    result = incremental_email_sync()
    create_audit_log(request=request, action='sync', model_name='EmailMessage',
                     object_id='imap', changes=result)
    return Response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def email_send(request):
    serializer = SendEmailSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    thread = data['thread']
    try:
        message = send_reply(thread, data['body'], user=request.user, to_email=data.get('to_email'),
                             subject=data.get('subject'), is_html=data['is_html'])
    except EmailSendError as e:
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

    create_audit_log(request=request, action='send', model_name='EmailThread',
                     object_id=thread.id, object_reference=message.to_email)
    log_activity('email_sent', f"Reply sent to {message.to_email}: {message.subject}",
                 user=request.user, metadata={'thread_id': thread.id})
    return Response(EmailMessageSerializer(message).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def email_link_to_order(request):
    """Link a thread to an order: {"thread_id", "order_id"}"""
    thread, error = _thread_from_body(request)
    if error:
        return error
    order_id = request.data.get('order_id')
    if not order_id:
        return Response({'error': 'order_id is required'}, status=status.HTTP_400_BAD_REQUEST)
    order = get_object_or_404(Order, pk=order_id)

    link_thread_to_order(thread, order)
    create_audit_log(request=request, action='link', model_name='EmailThread',
                     object_id=thread.id, object_reference=f"#{order.order_number}",
                     changes={'order': order.id})
    return Response(EmailThreadListSerializer(thread).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def email_create_case(request):
    thread, error = _thread_from_body(request)
    if error:
        return error
    case = create_case_from_thread(thread, request.user, request.data)
    create_audit_log(request=request, action='create', model_name='Case',
                     object_id=case.id, object_reference=case.case_number,
                     changes={'email_thread': thread.id})
    log_activity('case_created', f"Case {case.case_number} created from email: {case.title}",
                 user=request.user, metadata={'case_id': case.id, 'thread_id': thread.id})
    return Response(CaseSerializer(case).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def email_create_return(request):
    thread, error = _thread_from_body(request)
    if error:
        return error
    serializer = ReturnSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = dict(serializer.validated_data)
    items = data.pop('items', [])
    return_request = create_return_from_thread(thread, request.user, data, items)
    create_audit_log(request=request, action='create', model_name='Return',
                     object_id=return_request.id, object_reference=return_request.return_number,
                     changes={'email_thread': thread.id})
    return Response(ReturnSerializer(return_request).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanManageRepairs])
def email_create_repair(request):
    thread, error = _thread_from_body(request)
    if error:
        return error
    data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
    if not data.get('title'):
        data['title'] = thread.subject or 'Repair'
    serializer = RepairSerializer(data=data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    repair = create_repair_from_thread(thread, request.user, serializer.validated_data)
    create_audit_log(request=request, action='create', model_name='Repair',
                     object_id=repair.id, object_reference=repair.title[:100],
                     changes={'email_thread': thread.id})
    log_activity('repair_created', f"Repair created from email: {repair.title}",
                 user=request.user, metadata={'repair_id': repair.id, 'thread_id': thread.id})
    return Response(RepairSerializer(repair).data, status=status.HTTP_201_CREATED)
