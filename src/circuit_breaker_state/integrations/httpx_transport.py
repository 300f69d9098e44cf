from __future__ import annotations

from collections.abc import Callable

import httpx

from circuit_breaker_state.breaker import CircuitBreakerState

ResponseClassifier = Callable[[httpx.Response], bool]


def is_server_error(response: httpx.Response) -> bool:
    """Default failure classifier: any 5xx response."""
    return response.status_code >= 500


class CircuitBreakerTransport(httpx.BaseTransport):
    """httpx transport that consults a breaker before each request.

    Requests are forwarded to ``transport``. While the breaker is open the
    request is not sent and ``BreakerOpenError`` is raised from
    ``client.send()``. Any exception from the inner transport is recorded
    as a failure and re-raised.
    """

    def __init__(
        self,
        breaker: CircuitBreakerState,
        *,
        transport: httpx.BaseTransport | None = None,
        is_failure: ResponseClassifier = is_server_error,
    ) -> None:
        """Wrap ``transport``.

        Args:
            breaker: Breaker recording request outcomes.
            transport: Inner transport. Defaults to ``httpx.HTTPTransport()``.
            is_failure: Returns ``True`` for responses that count as failures.
        """
        self.breaker = breaker
        self._transport = httpx.HTTPTransport() if transport is None else transport
        self._is_failure = is_failure

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        error = self.breaker.test()
        if error is not None:
            raise error
        try:
            response = self._transport.handle_request(request)
        except Exception:
            self.breaker.record_failure()
            raise
        if self._is_failure(response):
            self.breaker.record_failure()
        else:
            self.breaker.record_success()
        return response

    def close(self) -> None:
        self._transport.close()


class AsyncCircuitBreakerTransport(httpx.AsyncBaseTransport):
    """Async counterpart of ``CircuitBreakerTransport``."""

    def __init__(
        self,
        breaker: CircuitBreakerState,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        is_failure: ResponseClassifier = is_server_error,
    ) -> None:
        self.breaker = breaker
        self._transport = (
            httpx.AsyncHTTPTransport() if transport is None else transport
        )
        self._is_failure = is_failure

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        error = self.breaker.test()
        if error is not None:
            raise error
        try:
            response = await self._transport.handle_async_request(request)
        except Exception:
            self.breaker.record_failure()
            raise
        if self._is_failure(response):
            self.breaker.record_failure()
        else:
            self.breaker.record_success()
        return response

    async def aclose(self) -> None:
        await self._transport.aclose()
