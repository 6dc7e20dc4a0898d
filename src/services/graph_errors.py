"""
Translation of Graph SDK / transport exceptions into ``RemoteError``.
"""

import asyncio
import functools
import logging

import httpx
from azure.core.exceptions import ClientAuthenticationError
from kiota_abstractions.api_error import APIError

from models.errors import ErrorCodes, RemoteError

logger = logging.getLogger(__name__)


def code_for_status(status_code: int | None) -> str:
    """Map an HTTP status to an error code."""
    if status_code in (401, 403):
        return ErrorCodes.AUTH
    if status_code in (400, 409, 422):
        return ErrorCodes.VALIDATION
    if status_code == 404:
        return ErrorCodes.NOT_FOUND
    if status_code is not None and status_code >= 500:
        return ErrorCodes.SERVER
    return ErrorCodes.INTERNAL


def to_remote_error(exc: BaseException) -> RemoteError:
    """Classify any exception raised by a remote call."""
    if isinstance(exc, RemoteError):
        return exc

    if isinstance(exc, APIError):
        status_code = getattr(exc, "response_status_code", None)
        # ODataError carries the service's own code and message
        odata = getattr(exc, "error", None)
        message = getattr(odata, "message", None) or getattr(exc, "message", None) or str(exc)
        service_code = getattr(odata, "code", None)
        if service_code:
            message = f"{service_code}: {message}"
        return RemoteError(code_for_status(status_code), message, status_code)

    if isinstance(exc, ClientAuthenticationError):
        return RemoteError(ErrorCodes.AUTH, f"Authentication failed: {exc.message}")

    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return RemoteError(ErrorCodes.TIMEOUT, "Request timed out")

    if isinstance(exc, httpx.TransportError):
        return RemoteError(ErrorCodes.NETWORK, f"Network error: {exc}")

    return RemoteError(ErrorCodes.INTERNAL, str(exc) or exc.__class__.__name__)


def remote_call(func):
    """Decorate an async Graph call so every failure surfaces as ``RemoteError``."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = to_remote_error(e)
            logger.debug("%s failed: %r", func.__name__, error)
            raise error from e

    return wrapper
