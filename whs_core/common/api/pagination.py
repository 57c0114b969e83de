# whs_core/common/api/pagination.py
from __future__ import annotations

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class DefaultPagination(PageNumberPagination):
    page_size = 25
    page_size_query_param = "page_size"
    max_page_size = 100


def paginate(request, items, serializer_class, *, paginator: PageNumberPagination | None = None) -> Response:
    """
    Page a queryset or a plain list into {count, next, previous, results}.
    Case listings arrive as lists because derived status is filtered in Python.
    """
    pager = paginator or DefaultPagination()
    page = pager.paginate_queryset(items, request)
    if page is None:
        return Response(serializer_class(items, many=True).data)
    return pager.get_paginated_response(serializer_class(page, many=True).data)
