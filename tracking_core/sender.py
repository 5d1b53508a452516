"""Fire-and-forget JSON POST sender shared by the analytics backends."""

import asyncio
import concurrent.futures
import threading
from typing import Any, Optional

import httpx
import structlog

from .exceptions import DeliveryError
from .tracing import delivery_span

log = structlog.get_logger(__name__)


class EventSender:
    """
    Posts analytics payloads without making the caller wait.

    A caller already on an event loop gets the POST scheduled as a task on
    that loop. Anyone else (host threads, synchronous plugin code) has it
    submitted to a background loop that the sender starts on first use and
    runs on a daemon thread. Delivery failures are logged and the event is
    dropped.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
        shutdown_grace: float = 2.0,
    ):
        self._timeout = timeout
        self._client = client or self._new_client()
        # An injected client is shared with the background loop; otherwise
        # that loop gets its own, since httpx pools are bound to one loop.
        self._background_client: Optional[httpx.AsyncClient] = (
            client if client is not None else None
        )
        self._shutdown_grace = shutdown_grace
        self._tasks: set[asyncio.Task] = set()
        self._futures: set[concurrent.futures.Future] = set()
        self._lock = threading.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._closed = False

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            headers={"Content-Type": "application/json"},
        )

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._tasks) + len(self._futures)

    @property
    def background_loop(self) -> asyncio.AbstractEventLoop:
        """The sender's own event loop, started on first access."""
        with self._lock:
            if self._loop is None:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(
                    target=loop.run_forever, name="analytics-sender", daemon=True
                )
                thread.start()
                if self._background_client is None:
                    self._background_client = self._new_client()
                self._loop, self._thread = loop, thread
                log.debug("Background sender loop started")
            return self._loop

    def loop_for_caller(self) -> asyncio.AbstractEventLoop:
        """The running loop when there is one, else the background loop."""
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return self.background_loop

    def _current_client(self) -> httpx.AsyncClient:
        if self._loop is not None and asyncio.get_running_loop() is self._loop:
            return self._background_client
        return self._client

    async def post(
        self,
        url: str,
        payload: dict[str, Any],
        *,
        params: dict[str, str] | None = None,
        mod_id: str | None = None,
        event_name: str | None = None,
    ) -> int:
        """
        POST a JSON payload and return the status code.

        Raises:
            DeliveryError: On a non-2xx response or a transport failure.
        """
        with delivery_span(url, mod_id=mod_id, event_name=event_name) as span:
            try:
                response = await self._current_client().post(
                    url, json=payload, params=params
                )
            except httpx.HTTPError as e:
                span.set_attribute("error", True)
                span.record_exception(e)
                raise DeliveryError(
                    f"Network error sending analytics event: {e.__class__.__name__}",
                    endpoint=url,
                ) from e

            span.set_attribute("http.status_code", response.status_code)
            if not response.is_success:
                span.set_attribute("error", True)
                raise DeliveryError(
                    f"Analytics endpoint returned {response.status_code}",
                    status_code=response.status_code,
                    endpoint=url,
                )
            return response.status_code

    async def _post_logged(self, url: str, payload: dict[str, Any], **kwargs) -> None:
        try:
            status_code = await self.post(url, payload, **kwargs)
            log.debug(
                "Analytics event delivered",
                mod_id=kwargs.get("mod_id"),
                event_name=kwargs.get("event_name"),
                status_code=status_code,
            )
        except DeliveryError as e:
            log.error(
                "Failed to send analytics event",
                mod_id=kwargs.get("mod_id"),
                event_name=kwargs.get("event_name"),
                status_code=e.status_code,
                error=e.detail,
            )

    def _forget_task(self, task: asyncio.Task) -> None:
        with self._lock:
            self._tasks.discard(task)

    def _forget_future(self, future: concurrent.futures.Future) -> None:
        with self._lock:
            self._futures.discard(future)

    def dispatch(
        self,
        url: str,
        payload: dict[str, Any],
        *,
        params: dict[str, str] | None = None,
        mod_id: str | None = None,
        event_name: str | None = None,
    ) -> bool:
        """Schedule a POST in the background. Returns False if it was dropped."""
        if self._closed:
            log.warning(
                "Sender is closed, dropping analytics event",
                mod_id=mod_id,
                event_name=event_name,
            )
            return False

        coro = self._post_logged(
            url, payload, params=params, mod_id=mod_id, event_name=event_name
        )
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None and loop is not self._loop:
            task = loop.create_task(coro)
            with self._lock:
                self._tasks.add(task)
            task.add_done_callback(self._forget_task)
            return True

        future = asyncio.run_coroutine_threadsafe(coro, self.background_loop)
        with self._lock:
            self._futures.add(future)
        future.add_done_callback(self._forget_future)
        return True

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight sends; anything still running after ``timeout`` is cancelled."""
        with self._lock:
            tasks = set(self._tasks)
            futures = set(self._futures)
        if not tasks and not futures:
            return

        waiting = tasks | {asyncio.wrap_future(future) for future in futures}
        _, still_running = await asyncio.wait(waiting, timeout=timeout)
        if not still_running:
            return
        for task in tasks:
            task.cancel()
        for future in futures:
            future.cancel()
        await asyncio.gather(*still_running, return_exceptions=True)
        log.warning("Cancelled unsent analytics events", count=len(still_running))

    async def aclose(self) -> None:
        """Flush pending sends, close the HTTP clients and stop the background loop."""
        await self.drain(self._shutdown_grace)
        self._closed = True
        await self._client.aclose()

        with self._lock:
            loop, thread = self._loop, self._thread
            background_client = self._background_client
            self._loop = self._thread = None
        if loop is None:
            return

        if background_client is not self._client:
            closing = asyncio.run_coroutine_threadsafe(background_client.aclose(), loop)
            await asyncio.wrap_future(closing)
        loop.call_soon_threadsafe(loop.stop)
        await asyncio.to_thread(thread.join, self._shutdown_grace)
        if not loop.is_running():
            loop.close()
        log.debug("Background sender loop stopped")
