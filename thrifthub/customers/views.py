from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404

from thrifthub.core.cache_utils import get_cached_customer, cache_customer_data
from thrifthub.core.pagination import paginated_response
from thrifthub.core.permissions import ReadOnlyForViewer, IsStaffRole
from thrifthub.core.utils import create_audit_log
from .models import Customer
from .serializers import CustomerSerializer


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def customer_list_create(request):
    """List all customers or create a new customer"""
    if request.method == 'GET':
        queryset = Customer.objects.all().order_by('-created_at')
        search = request.query_params.get('search', None)
        if search:
            queryset = queryset.filter(
                Q(email__icontains=search) |
                Q(first_name__icontains=search) |
                Q(last_name__icontains=search) |
                Q(phone__icontains=search)
            )
        return paginated_response(request, queryset, CustomerSerializer, default_limit=50)
    else:
        serializer = CustomerSerializer(data=request.data)
        if serializer.is_valid():
            customer = serializer.save()
            create_audit_log(request=request, action='create', model_name='Customer',
                             object_id=customer.id, object_reference=customer.email)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, ReadOnlyForViewer])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    if request.method == 'GET':
        cached_data = get_cached_customer(pk)
        if cached_data:
            return Response(cached_data)
        customer = get_object_or_404(Customer, pk=pk)
        response_data = CustomerSerializer(customer).data
        cache_customer_data(pk, response_data)
        return Response(response_data)

    customer = get_object_or_404(Customer, pk=pk)
    if request.method in ('PUT', 'PATCH'):
        serializer = CustomerSerializer(customer, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Customer',
                             object_id=customer.id, object_reference=customer.email,
                             changes=dict(request.data))
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not IsStaffRole().has_permission(request, None):
            return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
        create_audit_log(request=request, action='delete', model_name='Customer',
                         object_id=customer.id, object_reference=customer.email)
        customer.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_orders(request, pk):
    """Orders placed by a customer, newest first"""
    from thrifthub.orders.models import Order
    from thrifthub.orders.serializers import OrderListSerializer

    customer = get_object_or_404(Customer, pk=pk)
    orders = Order.objects.filter(
        Q(customer=customer) | Q(customer_email__iexact=customer.email)
    ).order_by('-order_date', '-created_at')
    return Response(OrderListSerializer(orders, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_email_threads(request, pk):
    """Email threads with a customer, most recently active first"""
    from thrifthub.mail.models import EmailThread
    from thrifthub.mail.serializers import EmailThreadListSerializer

    customer = get_object_or_404(Customer, pk=pk)
    threads = EmailThread.objects.filter(
        Q(customer=customer) | Q(customer_email__iexact=customer.email)
    ).order_by('-last_activity')
    return Response(EmailThreadListSerializer(threads, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_repairs(request, pk):
    from thrifthub.repairs.models import Repair
    from thrifthub.repairs.serializers import RepairSerializer

    customer = get_object_or_404(Customer, pk=pk)
    repairs = Repair.objects.filter(
        Q(customer=customer) | Q(customer_email__iexact=customer.email)
    ).order_by('-created_at')
    return Response(RepairSerializer(repairs, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_returns(request, pk):
    from thrifthub.returns.models import Return
    from thrifthub.returns.serializers import ReturnListSerializer

    customer = get_object_or_404(Customer, pk=pk)
    returns = Return.objects.filter(customer=customer).order_by('-created_at')
    return Response(ReturnListSerializer(returns, many=True).data)
