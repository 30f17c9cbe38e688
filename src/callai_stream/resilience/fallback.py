"""
Invalid-model fallback and credential-refresh retry.

One logical request makes at most three sends:

- the original request
- one retry with the fallback model, when the API rejects the model id
- one retry with a refreshed credential, when the API answers 401 and the
  credential collaborator hands back a different key

Everything else fails fast: other API errors raise ``RemoteError`` and
network errors propagate untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

from callai_stream.config import FALLBACK_MODEL
from callai_stream.errors import ErrorClass, RemoteError
from callai_stream.telemetry import get_log_context, get_logger, set_log_context

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from callai_stream.types.request import ChatRequest

T = TypeVar("T")

logger = get_logger("callai_stream.resilience.fallback")


class AttemptState(str, Enum):
    """Outcome of one send."""

    SENDING = "sending"
    SUCCEEDED = "succeeded"
    INVALID_MODEL = "invalid_model"
    AUTH_EXPIRED = "auth_expired"
    FAILED = "failed"


@dataclass
class Attempt:
    """Record of one send within a logical request.

    Attributes:
        number: One-based attempt number
        model: Model id sent
        is_fallback: Whether this attempt used the fallback model
        is_auth_retry: Whether this attempt used a refreshed credential
        state: Outcome
        status_code: HTTP status of a failed attempt
        error: Exception raised by the attempt
    """

    number: int
    model: str
    is_fallback: bool = False
    is_auth_retry: bool = False
    state: AttemptState = AttemptState.SENDING
    status_code: int | None = None
    error: Exception | None = None


class FallbackOrchestrator(Generic[T]):
    """Runs a send coroutine under the fallback/refresh protocol.

    Example:
        >>> orchestrator = FallbackOrchestrator(transport.send, refresh_credential=refresh)
        >>> response = await orchestrator.execute(request)
    """

    def __init__(
        self,
        send: Callable[[ChatRequest], Awaitable[T]],
        *,
        refresh_credential: Callable[[str | None], Awaitable[str | None]] | None = None,
        fallback_model: str = FALLBACK_MODEL,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            send: Coroutine sending one request; raises RemoteError on API errors
            refresh_credential: Coroutine returning a replacement key for the
                current one, or None when none is available
            fallback_model: Model id retried once when the requested one is invalid
        """
        self._send = send
        self._refresh = refresh_credential
        self._fallback_model = fallback_model
        self._attempts: list[Attempt] = []

    @property
    def fallback_model(self) -> str:
        """Model id used for the fallback retry."""
        return self._fallback_model

    @property
    def attempts(self) -> list[Attempt]:
        """Attempts made by the most recent ``execute``."""
        return list(self._attempts)

    async def execute(self, request: ChatRequest) -> T:
        """Send a request, falling back or refreshing as needed.

        Args:
            request: The original request

        Returns:
            Result of the first successful send

        Raises:
            RemoteError: When the API rejects the request for good
            Exception: Anything else raised by ``send``, unchanged
        """
        self._attempts = []
        outer_context = get_log_context()
        try:
            return await self._attempt(request, is_fallback=False, is_auth_retry=False)
        finally:
            set_log_context(outer_context)

    async def _attempt(
        self,
        request: ChatRequest,
        *,
        is_fallback: bool,
        is_auth_retry: bool,
    ) -> T:
        attempt = Attempt(
            number=len(self._attempts) + 1,
            model=request.model,
            is_fallback=is_fallback,
            is_auth_retry=is_auth_retry,
        )
        self._attempts.append(attempt)
        set_log_context(get_log_context().evolve(model=request.model, attempt=attempt.number))

        try:
            result = await self._send(request)
        except RemoteError as e:
            attempt.status_code = e.status_code
            attempt.error = e

            if self._should_fall_back(e, request, is_fallback):
                attempt.state = AttemptState.INVALID_MODEL
                logger.info(
                    "Model rejected, retrying with fallback model",
                    model=request.model,
                    fallback_model=self._fallback_model,
                    status_code=e.status_code,
                )
                return await self._attempt(
                    request.with_model(self._fallback_model),
                    is_fallback=True,
                    is_auth_retry=is_auth_retry,
                )

            if e.error_class is ErrorClass.AUTHENTICATION and not is_auth_retry:
                new_key = await self._refreshed_key(request.api_key)
                if new_key:
                    attempt.state = AttemptState.AUTH_EXPIRED
                    logger.info(
                        "Credential refreshed, retrying",
                        model=request.model,
                        is_fallback=is_fallback,
                    )
                    return await self._attempt(
                        request.with_api_key(new_key),
                        is_fallback=is_fallback,
                        is_auth_retry=True,
                    )

            attempt.state = AttemptState.FAILED
            logger.warning(
                "Chat request failed",
                model=request.model,
                status_code=e.status_code,
                error_class=e.error_class.value,
            )
            raise
        except Exception as e:
            attempt.state = AttemptState.FAILED
            attempt.error = e
            raise

        attempt.state = AttemptState.SUCCEEDED
        return result

    def _should_fall_back(
        self, error: RemoteError, request: ChatRequest, is_fallback: bool
    ) -> bool:
        return (
            error.is_invalid_model
            and not request.skip_retry
            and not is_fallback
            and request.model != self._fallback_model
        )

    async def _refreshed_key(self, current_key: str | None) -> str | None:
        """Ask the credential collaborator for a different, non-empty key."""
        if self._refresh is None:
            return None
        new_key = await self._refresh(current_key)
        if not new_key or new_key == current_key:
            logger.debug("No replacement credential available")
            return None
        return new_key
