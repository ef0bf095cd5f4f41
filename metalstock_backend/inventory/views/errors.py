# inventory/views/errors.py

"""
DOMAIN ERROR -> HTTP RESPONSE

Views call the services and hand any domain error to `error_response`.
Unknown exceptions are not caught here; they propagate to DRF.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import ProtectedError
from rest_framework import serializers, status
from rest_framework.response import Response

from inventory.services.exceptions import (
    InsufficientStockError,
    InventoryServiceError,
    LotNotFoundError,
    MaterialNotFoundError,
    StaleLotError,
)


HANDLED_ERRORS = (InventoryServiceError, DjangoValidationError, ProtectedError)


def validation_detail(exc: DjangoValidationError):
    if hasattr(exc, "message_dict"):
        return exc.message_dict
    return {"detail": " ".join(exc.messages)}


def as_drf_validation_error(exc: DjangoValidationError) -> serializers.ValidationError:
    """For serializer .save() paths that run model full_clean()."""
    return serializers.ValidationError(validation_detail(exc))


def error_response(exc: Exception) -> Response:
    if isinstance(exc, (MaterialNotFoundError, LotNotFoundError)):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)

    if isinstance(exc, InsufficientStockError):
        return Response(
            {
                "detail": str(exc),
                "available": str(exc.available),
                "requested": str(exc.requested) if exc.requested is not None else None,
            },
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, StaleLotError):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

    if isinstance(exc, ProtectedError):
        return Response(
            {"detail": "Record is referenced by stock or project history and cannot be deleted."},
            status=status.HTTP_409_CONFLICT,
        )

    if isinstance(exc, DjangoValidationError):
        return Response(validation_detail(exc), status=status.HTTP_400_BAD_REQUEST)

    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
