from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class MemberPagination(PageNumberPagination):
    # ?page=1&perPage=50
    page_query_param = 'page'
    page_size_query_param = 'perPage'
    page_size = 50
    max_page_size = 500

    def get_paginated_response(self, data):
        return Response({
            "success": True,
            "message": "Members fetched successfully.",
            "members": data,
            "pagination": {
                "page": self.page.number,
                "total": self.page.paginator.count,
                "perPage": self.get_page_size(self.request),
            }
        })
