from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from django.db.models import Q
from .models import Setting, AuditLog, Activity
from .permissions import IsAdminRole, user_role
from .serializers import (
    UserSerializer, UserCreateSerializer, UserMinimalSerializer,
    SettingSerializer, AuditLogSerializer, ActivitySerializer
)
from .pagination import paginated_response

User = get_user_model()

SEARCH_LIMIT = 20


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user_role(user)
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that rejects tokens of deleted users with a clean error"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user with role-derived capabilities"""
    user = request.user
    user_data = UserSerializer(user).data
    role = user_role(user)
    user_data['role'] = role
    user_data['is_admin'] = role == 'admin'
    user_data['can_edit'] = role in ('admin', 'agent')
    user_data['can_manage_repairs'] = role in ('admin', 'agent', 'repair_tech')
    return Response(user_data)


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.all().order_by('username')
        serializer = UserSerializer(users, many=True)
        return Response(serializer.data)
    else:
        serializer = UserCreateSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_list_minimal(request):
    """Active users for assignment pickers"""
    users = User.objects.filter(is_active=True).order_by('first_name', 'username')
    return Response(UserMinimalSerializer(users, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        serializer = UserSerializer(user)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def setting_list_create(request):
    """List all settings or create a new setting"""
    if request.method == 'GET':
        settings = Setting.objects.all().order_by('key')
        serializer = SettingSerializer(settings, many=True)
        return Response(serializer.data)
    else:
        serializer = SettingSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def setting_detail(request, pk):
    """Retrieve, update or delete a setting"""
    setting = get_object_or_404(Setting, pk=pk)

    if request.method == 'GET':
        serializer = SettingSerializer(setting)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SettingSerializer(setting, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        setting.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def activity_list(request):
    """Recent team activity, newest first"""
    queryset = Activity.objects.select_related('user').order_by('-created_at')

    activity_type = request.query_params.get('type')
    if activity_type:
        queryset = queryset.filter(type=activity_type)

    try:
        limit = min(int(request.query_params.get('limit', 50)), 500)
    except (TypeError, ValueError):
        limit = 50

    serializer = ActivitySerializer(queryset[:limit], many=True)
    return Response(serializer.data)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user')

    # Non-admins only see their own entries
    if user_role(request.user) != 'admin':
        queryset = queryset.filter(user=request.user)

    action_filter = request.query_params.get('action', None)
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model', None)
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    object_id = request.query_params.get('object_id', None)
    if object_id:
        queryset = queryset.filter(object_id=object_id)

    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(created_at__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__lte=date_to)

    return paginated_response(request, queryset.order_by('-created_at'), AuditLogSerializer, default_limit=50)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_object_or_404(AuditLog, pk=pk)

    if user_role(request.user) != 'admin' and audit_log.user != request.user:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    serializer = AuditLogSerializer(audit_log)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def global_search(request):
    """Global search across all entities"""
    query = request.query_params.get('q', '').strip()

    empty = {
        'customers': [],
        'orders': [],
        'returns': [],
        'repairs': [],
        'cases': [],
        'email_threads': [],
        'todos': [],
        'purchase_orders': [],
    }
    if not query:
        return Response(empty)

    from thrifthub.customers.models import Customer
    from thrifthub.orders.models import Order
    from thrifthub.returns.models import Return
    from thrifthub.repairs.models import Repair
    from thrifthub.cases.models import Case
    from thrifthub.mail.models import EmailThread
    from thrifthub.todos.models import Todo
    from thrifthub.purchasing.models import PurchaseOrder
    from thrifthub.customers.serializers import CustomerSerializer
    from thrifthub.orders.serializers import OrderListSerializer
    from thrifthub.returns.serializers import ReturnListSerializer
    from thrifthub.repairs.serializers import RepairSerializer
    from thrifthub.cases.serializers import CaseSerializer
    from thrifthub.mail.serializers import EmailThreadListSerializer
    from thrifthub.todos.serializers import TodoSerializer
    from thrifthub.purchasing.serializers import PurchaseOrderListSerializer

    results = {}

    customers = Customer.objects.filter(
        Q(email__icontains=query) |
        Q(first_name__icontains=query) |
        Q(last_name__icontains=query) |
        Q(phone__icontains=query)
    )[:SEARCH_LIMIT]
    results['customers'] = CustomerSerializer(customers, many=True).data

    order_filter = Q(customer_email__icontains=query)
    order_number = query.lstrip('#')
    if order_number:
        order_filter |= Q(order_number__icontains=order_number)
    orders = Order.objects.filter(order_filter).select_related('customer')[:SEARCH_LIMIT]
    results['orders'] = OrderListSerializer(orders, many=True).data

    returns = Return.objects.filter(
        Q(return_number__icontains=query) |
        Q(shopify_return_name__icontains=query) |
        Q(tracking_number__icontains=query)
    )[:SEARCH_LIMIT]
    results['returns'] = ReturnListSerializer(returns, many=True).data

    repairs = Repair.objects.filter(
        Q(title__icontains=query) |
        Q(description__icontains=query)
    )[:SEARCH_LIMIT]
    results['repairs'] = RepairSerializer(repairs, many=True).data

    cases = Case.objects.filter(
        Q(case_number__icontains=query) |
        Q(title__icontains=query)
    )[:SEARCH_LIMIT]
    results['cases'] = CaseSerializer(cases, many=True).data

    threads = EmailThread.objects.filter(
        Q(subject__icontains=query) |
        Q(customer_email__icontains=query)
    )[:SEARCH_LIMIT]
    results['email_threads'] = EmailThreadListSerializer(threads, many=True).data

    todos = Todo.objects.filter(title__icontains=query).prefetch_related('subtasks')[:SEARCH_LIMIT]
    results['todos'] = TodoSerializer(todos, many=True).data

    purchase_orders = PurchaseOrder.objects.filter(
        Q(po_number__icontains=query) |
        Q(title__icontains=query) |
        Q(supplier__name__icontains=query)
    ).select_related('supplier')[:SEARCH_LIMIT]
    results['purchase_orders'] = PurchaseOrderListSerializer(purchase_orders, many=True).data

    return Response(results)
