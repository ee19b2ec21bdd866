from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, Dict, Optional, Sequence

import httpx

from .errors import ClientClosedError
from .handle import RequestHandle, RequestState
from .models import Attachment, Payload
from .serializer import serialize
from .tracker import RequestTracker


logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
DELIVERY_THREAD_NAME = "webhook-notifier"

FailureHook = Callable[[BaseException, Optional[RequestHandle]], None]


class WebhookClient:
    """Fire-and-forget client for an incoming webhook.

    ``post_message_async`` serializes the message on the calling thread and
    hands the POST to a private event loop running on a daemon thread. The
    caller never sees the outcome; failures are logged and reported to the
    optional ``on_failure`` hook.

    One pooled ``httpx.AsyncClient`` is kept per proxy address, up to
    ``max_clients``. Requests through further proxies use a client that is
    closed as soon as the request ends.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout_seconds: float = 10.0,
        on_failure: Optional[FailureHook] = None,
        tracker: Optional[RequestTracker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_clients: int = 8,
    ):
        self.webhook_url = webhook_url
        self.timeout_seconds = timeout_seconds
        self.on_failure = on_failure
        self.tracker = tracker if tracker is not None else RequestTracker()
        self._transport = transport
        self.max_clients = max_clients
        self._clients: Dict[Optional[str], httpx.AsyncClient] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self.tracker)

    def post_message_async(
        self,
        text: str,
        proxy_address: Optional[str] = None,
        attachments: Optional[Sequence[Attachment]] = None,
    ) -> None:
        handle: Optional[RequestHandle] = None
        try:
            body = serialize(Payload(text=text, attachments=attachments))
            handle = RequestHandle(self.webhook_url, body, proxy_address)
            self.tracker.add(handle)
            handle.advance(RequestState.REGISTERED)
            loop = self._ensure_loop()
            delivery = self._deliver(handle)
            try:
                asyncio.run_coroutine_threadsafe(delivery, loop)
            except Exception:
                delivery.close()
                raise
        except Exception as exc:
            self._fail(handle, exc)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Block until every submitted request is terminal. False on timeout."""
        return self.tracker.wait_until_empty(timeout)

    def close(self, timeout: float = 5.0) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            loop, thread = self._loop, self._thread

        # From the loop thread (e.g. an on_failure hook) nothing can progress
        # while we block, so shut down without waiting.
        on_loop_thread = thread is not None and threading.current_thread() is thread

        if not on_loop_thread and not self.tracker.wait_until_empty(timeout):
            logger.warning("Closing webhook client with %s requests still in flight", len(self.tracker))

        if loop is not None and thread is not None:
            shutdown = asyncio.run_coroutine_threadsafe(self._shutdown(), loop)
            if on_loop_thread:
                shutdown.add_done_callback(lambda _: loop.call_soon_threadsafe(loop.stop))
            else:
                try:
                    shutdown.result(timeout)
                except Exception:
                    logger.exception("Failed to shut down webhook client cleanly")
                loop.call_soon_threadsafe(loop.stop)
                thread.join(timeout)

        for handle in self.tracker.snapshot():
            self._fail(handle, ClientClosedError("Client closed before delivery completed"))

    def __enter__(self) -> "WebhookClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._closed:
                raise ClientClosedError("Webhook client is closed")
            if self._loop is None:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(
                    target=self._run_loop, args=(loop,), name=DELIVERY_THREAD_NAME, daemon=True
                )
                thread.start()
                self._loop, self._thread = loop, thread
            return self._loop

    @staticmethod
    def _run_loop(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
        finally:
            loop.close()

    def _create_http_client(self, proxy: Optional[str]) -> httpx.AsyncClient:
        return httpx.AsyncClient(proxy=proxy, transport=self._transport, timeout=self.timeout_seconds)

    def _pooled_client(self, proxy: Optional[str]) -> Optional[httpx.AsyncClient]:
        # only touched from the loop thread
        client = self._clients.get(proxy)
        if client is None and len(self._clients) < self.max_clients:
            client = self._create_http_client(proxy)
            self._clients[proxy] = client
        return client

    async def _post(self, client: httpx.AsyncClient, handle: RequestHandle) -> None:
        async with client.stream(
            "POST",
            handle.url,
            content=handle.iter_body(),
            headers={"Content-Type": JSON_CONTENT_TYPE, "Content-Length": str(len(handle.body))},
        ):
            # Not interested in status or body; any response counts as delivered.
            pass

    async def _deliver(self, handle: RequestHandle) -> None:
        try:
            client = self._pooled_client(handle.proxy)
            if client is None:
                async with self._create_http_client(handle.proxy) as one_shot:
                    await self._post(one_shot, handle)
            else:
                await self._post(client, handle)
        except Exception as exc:
            self._fail(handle, exc)
            return
        self._complete(handle)

    async def _shutdown(self) -> None:
        current = asyncio.current_task()
        tasks = [task for task in asyncio.all_tasks() if task is not current]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        clients, self._clients = list(self._clients.values()), {}
        for client in clients:
            await client.aclose()

    def _complete(self, handle: RequestHandle) -> None:
        if handle.finish(RequestState.COMPLETED):
            self.tracker.remove(handle)
            logger.debug("Webhook request %s delivered", handle.id)

    def _fail(self, handle: Optional[RequestHandle], error: BaseException) -> None:
        if handle is not None:
            if not handle.finish(RequestState.FAILED, error):
                return
            self.tracker.remove(handle)
        logger.warning(
            "Webhook request %s failed: %s",
            handle.id if handle is not None else "-",
            error,
            exc_info=error,
        )
        if self.on_failure is None:
            return
        try:
            self.on_failure(error, handle)
        except Exception:
            logger.exception("Webhook failure hook raised")
