from django.core.paginator import Paginator
from django.utils import timezone
from rest_framework.response import Response


def paginated_response(request, queryset, serializer_class, default_limit=25, context=None):
    """Paginate a queryset with ?page= and ?limit= and wrap it in the list envelope"""
    try:
        page = max(int(request.query_params.get('page', 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = min(max(int(request.query_params.get('limit', default_limit)), 1), 200)
    except (TypeError, ValueError):
        limit = default_limit

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    response = Response({
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })
    response['Cache-Control'] = 'private, max-age=10, must-revalidate'
    response['X-Data-Version'] = timezone.now().isoformat()
    return response
