# core/pagination.py
from django.core.paginator import Paginator

DEFAULT_PER_PAGE = 10


def parse_sort(sort, allowed, default):
    """
    Turn ``column.direction`` into an ``order_by`` expression.

    ``allowed`` maps public column names to model fields; unknown columns
    fall back to ``default``.
    """
    column, _, direction = (sort or '').partition('.')
    field = allowed.get(column)
    if field is None:
        return default
    return field if direction == 'asc' else f'-{field}'


def _positive_int(value, default):
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def paginate(queryset, page=1, per_page=DEFAULT_PER_PAGE):
    """Page of results in the shape the admin tables consume"""
    per_page = _positive_int(per_page, DEFAULT_PER_PAGE)
    paginator = Paginator(queryset, per_page)
    page_obj = paginator.get_page(_positive_int(page, 1))

    data = list(page_obj.object_list)

    return {
        'data': data,
        'count': len(data),
        'page_count': paginator.num_pages,
        'total': paginator.count,
        'next_page': page_obj.next_page_number() if page_obj.has_next() else None,
        'current_page': page_obj.number,
        'min_max': {
            'min': page_obj.start_index() if data else 0,
            'max': page_obj.end_index() if data else 0,
        },
        'page_obj': page_obj,
    }
