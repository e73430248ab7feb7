"""Base class for async HTTP clients."""

import logging
from typing import Optional, Type, TypeVar

import httpx
import pydantic

from ..application.exceptions import (
    ApiError,
    AuthError,
    DecodeError,
    NotFoundError,
    RateLimitError,
    TransportError,
)

from .decorators import retry_on_network_error
from .request_builder import RequestBuilder

T = TypeVar("T")

_STATUS_ERRORS = {
    401: AuthError,
    403: AuthError,
    404: NotFoundError,
}


def _retry_after(response: httpx.Response) -> Optional[int]:
    value = response.headers.get("Retry-After")
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


def error_for_response(response: httpx.Response) -> ApiError:
    """Maps a non-2xx response (body already read) to the matching error type."""
    body = response.text
    url = str(response.request.url)
    status = response.status_code

    if status == 429:
        return RateLimitError(status, body, url, retry_after=_retry_after(response))
    error_type = _STATUS_ERRORS.get(status, ApiError)
    return error_type(status, body, url)


class BaseClient:
    """
    A base client that handles an async client, request building and the
    mapping of transport failures and status codes onto library errors.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        builder: RequestBuilder,
        timeout: float,
        retry_attempts: int = 1,
    ):
        """
        Initializes the base client.

        Args:
            client: An instance of httpx.AsyncClient.
            builder: A RequestBuilder holding resolved credentials.
            timeout: Per-request timeout in seconds.
            retry_attempts: Attempts per call for retryable failures.
        """

        self.client = client
        self.builder = builder
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.logger = logging.getLogger(self.__class__.__name__)

    async def _send_once(self, request: httpx.Request) -> httpx.Response:
        """Sends a request and fails on any non-2xx status."""
        self.logger.debug(f"{request.method} {request.url}")
        request.extensions["timeout"] = httpx.Timeout(self.timeout).as_dict()
        try:
            response = await self.client.send(request, follow_redirects=True)
        except httpx.TransportError as e:
            raise TransportError(
                f"{request.method} {request.url} failed: {e!r}"
            ) from e

        if not response.is_success:
            raise error_for_response(response)
        return response

    async def _send(self, request: httpx.Request) -> httpx.Response:
        """Sends a request under the configured retry policy."""
        send = retry_on_network_error(self.retry_attempts)(self._send_once)
        return await send(request)

    @staticmethod
    def _decode(response: httpx.Response, model: Type[T]) -> T:
        """
        Validates a JSON body against a type.

        Raises:
            DecodeError: If the body is not JSON or does not fit the type.
        """
        try:
            return pydantic.TypeAdapter(model).validate_json(response.content)
        except pydantic.ValidationError as e:
            raise DecodeError(
                f"Unexpected response from {response.request.url}: {e}",
                body=response.text,
            ) from e

    async def _fetch(self, model: Type[T], request: httpx.Request) -> T:
        """Sends a request and decodes the JSON body into `model`."""
        response = await self._send(request)
        return self._decode(response, model)
