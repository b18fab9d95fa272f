"""Domain error base class and the API error envelope.

Every typed failure raised by a service derives from ``DomainError`` and
carries its own HTTP classification, so views can let domain errors
propagate and rely on ``api_exception_handler`` to render them::

    {"type": "client_error", "errors": [{"code": "...", "detail": "...", "attr": null}]}
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import PermissionDenied
from django.http import Http404
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


class DomainError(Exception):
    """Base class for business-rule failures.

    Subclasses override ``status_code`` and ``default_message``; the
    machine-readable ``code`` defaults to the class name.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Business rule violated."
    code: Optional[str] = None

    def __init__(self, message: Optional[str] = None, *, attr: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.attr = attr
        super().__init__(self.message)

    @property
    def error_code(self) -> str:
        return self.code or type(self).__name__

    @property
    def is_client_error(self) -> bool:
        return self.status_code < 500


# ---------------------------------------------------------------------------
# Envelope rendering
# ---------------------------------------------------------------------------


def _error_type(status_code: int, validation: bool = False) -> str:
    if validation:
        return "validation_error"
    return "client_error" if status_code < 500 else "server_error"


def _flatten(detail: Any, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    """Flatten DRF's nested ``ErrorDetail`` structures into a list."""
    if isinstance(detail, dict):
        errors: List[Dict[str, Any]] = []
        for key, value in detail.items():
            name = key if attr is None else f"{attr}.{key}"
            errors.extend(_flatten(value, None if key == "non_field_errors" else name))
        return errors
    if isinstance(detail, list):
        errors = []
        for index, item in enumerate(detail):
            child_attr = attr if not isinstance(item, (dict, list)) else f"{attr}.{index}"
            errors.extend(_flatten(item, child_attr))
        return errors
    return [
        {
            "code": getattr(detail, "code", "error"),
            "detail": str(detail),
            "attr": attr,
        }
    ]


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """DRF ``EXCEPTION_HANDLER`` producing the standard error envelope."""
    if isinstance(exc, DomainError):
        log = logger.bind(code=exc.error_code, status_code=exc.status_code)
        if exc.is_client_error:
            log.info("api.domain_error", detail=exc.message)
        else:
            log.error("api.domain_error", detail=exc.message)
        body = {
            "type": _error_type(exc.status_code),
            "errors": [{"code": exc.error_code, "detail": exc.message, "attr": exc.attr}],
        }
        return Response(body, status=exc.status_code)

    if isinstance(exc, PydanticValidationError):
        errors = [
            {
                "code": error["type"],
                "detail": error["msg"],
                "attr": ".".join(str(part) for part in error["loc"]) or None,
            }
            for error in exc.errors()
        ]
        return Response(
            {"type": "validation_error", "errors": errors},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, PermissionDenied):
        exc = exceptions.PermissionDenied()

    response = exception_handler(exc, context)
    if response is None:
        return None

    is_validation = isinstance(exc, (exceptions.ValidationError, exceptions.ParseError))
    if isinstance(exc, exceptions.APIException) and not isinstance(exc, exceptions.ValidationError):
        errors = [{"code": exc.get_codes(), "detail": str(exc.detail), "attr": None}]
    else:
        errors = _flatten(response.data)
    response.data = {
        "type": _error_type(response.status_code, validation=is_validation),
        "errors": errors,
    }
    return response
