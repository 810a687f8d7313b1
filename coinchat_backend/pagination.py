from rest_framework.pagination import PageNumberPagination

from .exceptions import envelope


class EnvelopePagination(PageNumberPagination):
    """?page=&limit= 페이지네이션. 응답은 공통 envelope 로 감싼다."""

    page_size = 20
    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data):
        return envelope(True, "Fetched successfully", data={
            "results": data,
            "pagination": {
                "total": self.page.paginator.count,
                "page": self.page.number,
                "totalPages": self.page.paginator.num_pages,
            },
        })
