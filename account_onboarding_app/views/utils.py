from __future__ import annotations

import inspect
import json
import logging
from functools import wraps
from typing import Any, Awaitable, Callable

from django.http import HttpRequest, HttpResponse, HttpResponseNotAllowed, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from account_onboarding.app import service_lifespan
from account_onboarding.errors import ErrorKind, ServiceError, ValidationFailedError


logger = logging.getLogger("account_onboarding.api")

GENERIC_FAILURE = "operation failed"


def json_response(data: Any, *, status: int = 200) -> JsonResponse:
    """Return a JSON response with UTF-8 safe dumps settings."""
    return JsonResponse(data, status=status, safe=False, json_dumps_params={"ensure_ascii": False})


def json_error(detail: Any, *, status: int) -> JsonResponse:
    """Return a consistent error payload."""
    return json_response({"detail": detail}, status=status)


def service_error_response(exc: ServiceError) -> JsonResponse:
    """Expose only the user-facing part of a service error."""
    if exc.kind is ErrorKind.INTERNAL:
        logger.error("service_error", exc_info=exc)
    message = exc.user_message or GENERIC_FAILURE
    if isinstance(exc, ValidationFailedError):
        return json_error({"message": message, "errors": exc.errors}, status=exc.http_status)
    return json_error(message, status=exc.http_status)


async def read_body(request: HttpRequest) -> bytes:
    """Read and normalise the request body into bytes."""
    body = request.body
    if inspect.isawaitable(body):
        body = await body
    if isinstance(body, str):
        body = body.encode("utf-8")
    return body or b""


async def parse_json_body(request: HttpRequest) -> Any:
    """Parse the incoming body as JSON, returning {} for empty bodies."""
    body = await read_body(request)
    if not body:
        return {}
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid JSON body") from exc


def open_services():
    return service_lifespan()


def service_view(*methods: str):
    """Resolve the caller from ``user_id`` and hand the view its services and request context.

    Service errors are mapped to HTTP statuses; only their user message leaves the process.
    """

    def decorator(func: Callable[..., Awaitable[HttpResponse]]):
        @csrf_exempt
        @wraps(func)
        async def wrapper(request: HttpRequest, *args, **kwargs):
            if request.method not in methods:
                return HttpResponseNotAllowed(list(methods))

            user_id = request.GET.get("user_id")
            if not user_id:
                return json_error("user_id query parameter required", status=400)

            async with open_services() as services:
                context = await services.users.get_context(user_id)
                if context is None:
                    return json_error("user not found", status=404)
                try:
                    return await func(request, services, context, *args, **kwargs)
                except ServiceError as exc:
                    return service_error_response(exc)
                except ValueError as exc:
                    return json_error(str(exc), status=400)

        return wrapper

    return decorator


__all__ = [
    "json_response",
    "json_error",
    "open_services",
    "parse_json_body",
    "read_body",
    "service_error_response",
    "service_view",
]
