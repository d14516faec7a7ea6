# recordgate/services/__init__.py
"""Default services plugged into the strategy and the entity pipeline."""

from recordgate.services.errors import DefaultErrorHandler
from recordgate.services.pagination import RequestPagination
from recordgate.services.query_modifier import RequestQueryModifier
from recordgate.services.response import JsonResponseFormatter, ResponseBuilder

__all__ = [
    "DefaultErrorHandler",
    "JsonResponseFormatter",
    "RequestPagination",
    "RequestQueryModifier",
    "ResponseBuilder",
]
