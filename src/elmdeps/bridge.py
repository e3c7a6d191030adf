"""Blocking request bridge.

The resolver calls the provider callbacks synchronously and cannot await
anything. All HTTP traffic therefore runs on one worker thread that owns an
asyncio event loop and an ``httpx.AsyncClient``. ``get`` hands a URL to that
loop and blocks the calling thread on a one-shot event until the worker has
put the outcome (body or ``FetchError``) into a single-slot channel. Each call
gets its own event and channel, so a caller interrupted mid-wait cannot leave
a stale outcome behind for the next one.

Requests are strictly sequential: the bridge never starts a second fetch
before the previous one has completed. There is no retry and, unless
the client is built with one, no timeout.
"""

from __future__ import annotations

import asyncio
import queue
import threading
from collections.abc import Callable
from types import TracebackType

import httpx
import structlog

from elmdeps.errors import ErrorCode, FetchError

log = structlog.get_logger()

ClientFactory = Callable[[], httpx.AsyncClient]


def build_http_client(timeout_seconds: float | None = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds),
        follow_redirects=True,
        headers={"User-Agent": "elmdeps"},
    )


async def fetch_body(client: httpx.AsyncClient, url: str) -> str:
    """GET ``url`` and return the body text.

    Transport failures raise ``FetchError``. A non-2xx status is *not* an
    error here: the body is returned as-is and the caller decides what it
    means. It is logged so that a bad cache entry can be traced back.
    """
    try:
        response = await client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise FetchError(url, f"Request to {url} failed: {exc}", cause=exc) from exc

    if not response.is_success:
        log.warning("registry_non_success_status", url=url, status_code=response.status_code)
    return response.text


class BlockingRequestBridge:
    """Synchronous ``get(url)`` backed by an async client on a worker thread."""

    def __init__(self, client_factory: ClientFactory | None = None) -> None:
        self._client_factory = client_factory or build_http_client
        self._client: httpx.AsyncClient | None = None
        self._loop = asyncio.new_event_loop()
        self._lock = threading.Lock()
        self._inflight: asyncio.Task[None] | None = None
        # Completion flag of the last submitted request, even if its caller gave up.
        self._previous_done: threading.Event | None = None
        self._closed = False
        self._thread = threading.Thread(
            target=self._run_loop, name="elmdeps-request-bridge", daemon=True
        )
        self._thread.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def get(self, url: str) -> str:
        """Block until ``url`` has been fetched. Raises ``FetchError``."""
        with self._lock:
            if self._closed:
                raise FetchError(
                    url,
                    f"Cannot fetch {url}: the request bridge has been shut down",
                    code=ErrorCode.BRIDGE_SHUT_DOWN,
                )
            if self._previous_done is not None:
                # A caller interrupted mid-wait leaves its request running.
                self._previous_done.wait()
            ready = threading.Event()
            channel: queue.Queue[str | FetchError] = queue.Queue(maxsize=1)
            self._previous_done = ready
            self._loop.call_soon_threadsafe(self._start_request, url, ready, channel)
            ready.wait()
            outcome = channel.get_nowait()

        if isinstance(outcome, FetchError):
            raise outcome
        return outcome

    def shut_down(self) -> None:
        """Close the client and stop the worker thread. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        if self._client is not None:
            asyncio.run_coroutine_threadsafe(self._client.aclose(), self._loop).result()
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()
        log.debug("request_bridge_shut_down")

    def __enter__(self) -> BlockingRequestBridge:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shut_down()

    # ------------------------------------------------------------------
    # Worker thread side
    # ------------------------------------------------------------------

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def _start_request(
        self, url: str, ready: threading.Event, channel: queue.Queue[str | FetchError]
    ) -> None:
        self._inflight = self._loop.create_task(self._serve(url, ready, channel))

    async def _serve(
        self, url: str, ready: threading.Event, channel: queue.Queue[str | FetchError]
    ) -> None:
        outcome: str | FetchError = FetchError(url, f"Request to {url} was abandoned")
        try:
            if self._client is None:
                self._client = self._client_factory()
            outcome = await fetch_body(self._client, url)
        except FetchError as exc:
            outcome = exc
        except Exception as exc:
            # The caller stays blocked until something lands in the channel.
            outcome = FetchError(url, f"Request to {url} failed: {exc}", cause=exc)
            outcome.__cause__ = exc
        finally:
            channel.put_nowait(outcome)
            ready.set()
