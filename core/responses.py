from rest_framework import status
from rest_framework.response import Response


def success_response(data=None, message=None, status_code=status.HTTP_200_OK, **extra):
    """
    Standard success envelope shared by every endpoint:
    {"success": true, "message"?: str, "data"?: ..., **extra}
    """
    payload = {"success": True}
    if message:
        payload["message"] = message
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return Response(payload, status=status_code)


def paginated_response(data, page, limit, total, **extra):
    total_pages = (total + limit - 1) // limit if limit else 0
    return success_response(
        data,
        count=len(data),
        total=total,
        pagination={
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
        **extra,
    )
