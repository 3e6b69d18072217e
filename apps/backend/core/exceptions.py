import logging

from django.db import IntegrityError
from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    view_name = view.__class__.__name__ if view else "unknown"

    if isinstance(exc, ProtectedError):
        logger.info("Delete blocked in %s: %s", view_name, exc)
        return Response(
            {"error": "This record is still referenced by other records and cannot be deleted."},
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, IntegrityError):
        logger.warning("Integrity error in %s: %s", view_name, exc)
        return Response(
            {"error": "A record with these values already exists."},
            status=status.HTTP_409_CONFLICT,
        )
    return None
