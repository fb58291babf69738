# solarshare/exceptions.py
"""
Error kinds raised by the accounting services.

Services raise these directly; DRF turns them into ``{"detail": ...}``
responses with the matching status code.
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import InterfaceError, OperationalError
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, ValidationError
from rest_framework.serializers import as_serializer_error
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

__all__ = ['NotFound', 'ValidationError', 'ConflictError', 'StoreUnavailable',
           'full_clean_or_raise', 'solarshare_exception_handler']


class ConflictError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Operation conflicts with the current state of the resource.'
    default_code = 'conflict'


class StoreUnavailable(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Storage backend is unavailable.'
    default_code = 'store_unavailable'


def full_clean_or_raise(instance, exclude=None):
    """
    Run model validation and re-raise failures as a DRF ValidationError
    carrying the field -> messages map.
    """
    try:
        instance.full_clean(exclude=exclude)
    except DjangoValidationError as e:
        raise ValidationError(as_serializer_error(e))


def solarshare_exception_handler(exc, context):
    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(as_serializer_error(exc))
    elif isinstance(exc, (OperationalError, InterfaceError)):
        logger.error("Storage backend error: %s", exc)
        exc = StoreUnavailable()
    return exception_handler(exc, context)
