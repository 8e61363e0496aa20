"""Default page-number pagination for list endpoints."""

from rest_framework.pagination import PageNumberPagination  # type: ignore


class StandardResultsSetPagination(PageNumberPagination):
    page_size = 10
    page_size_query_param = "limit"
    max_page_size = 100
