"""
Stream Transport
Base abstract class and the aiohttp WebSocket implementation used to receive
telemetry frames from the cane.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Union
import asyncio
import logging

import aiohttp

from ..core.exceptions import TransportError


Frame = Union[str, bytes]


class BaseStreamTransport(ABC):
    """
    One-shot stream connection driven through four callbacks.

    A transport is opened once and closed once; reconnecting means building a
    new transport. Callbacks are plain functions called one at a time from the
    transport's own task:

    - ``on_open()`` when the stream is established
    - ``on_message(frame)`` for each inbound frame
    - ``on_close()`` when the peer closes the stream
    - ``on_error(exc)`` when opening fails or the stream breaks

    Exactly one of ``on_close``/``on_error`` ends a session, and neither fires
    after ``close()`` was called.
    """

    def __init__(self,
                 url: str,
                 on_open: Callable[[], Any],
                 on_message: Callable[[Frame], Any],
                 on_close: Callable[[], Any],
                 on_error: Callable[[Exception], Any]):
        self.url = url
        self.logger = logging.getLogger(self.__class__.__name__)
        self._on_open = on_open
        self._on_message = on_message
        self._on_close = on_close
        self._on_error = on_error
        self._closing = False

    @abstractmethod
    def open(self) -> None:
        """Start connecting. Raises TransportError if the attempt cannot start."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the stream; no further callbacks are delivered."""
        pass

    async def wait_closed(self) -> None:
        """Wait until the transport released its resources."""
        return None

    @property
    def closing(self) -> bool:
        return self._closing

    @property
    def released(self) -> bool:
        """True once close() ran and nothing is left to wait for."""
        return self._closing

    # ---- Callback delivery ----
    def _dispatch(self, callback: Callable, *args) -> None:
        if self._closing:
            return
        try:
            callback(*args)
        except Exception as e:
            self.logger.error(f"Error in transport callback {callback!r}: {e}", exc_info=True)


class WebSocketTransport(BaseStreamTransport):
    """
    aiohttp WebSocket client for the cane's telemetry port.

    Features:
    - Independent ClientSession per transport, closed with it
    - Bounded handshake timeout
    - Optional heartbeat (ping/pong) to detect dead peers
    - Text and binary frames forwarded verbatim
    """

    def __init__(self,
                 url: str,
                 on_open: Callable[[], Any],
                 on_message: Callable[[Frame], Any],
                 on_close: Callable[[], Any],
                 on_error: Callable[[Exception], Any],
                 connect_timeout: float = 10.0,
                 heartbeat: Optional[float] = None):
        super().__init__(url, on_open, on_message, on_close, on_error)
        self.connect_timeout = connect_timeout
        self.heartbeat = heartbeat
        self._task: Optional[asyncio.Task] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None

    def open(self) -> None:
        if self._task is not None:
            raise TransportError("transport already opened")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise TransportError(f"cannot open {self.url} without a running event loop") from e
        self._task = loop.create_task(self._run())

    def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        # closing from one of our own callbacks: _run is already on its way out
        if self._task is not None and not self._task.done() and not self._in_own_task():
            self._task.cancel()

    def _in_own_task(self) -> bool:
        try:
            return asyncio.current_task() is self._task
        except RuntimeError:
            return False

    async def wait_closed(self) -> None:
        if self._task is not None:
            await asyncio.wait({self._task})

    @property
    def released(self) -> bool:
        return self._task is None or self._task.done()

    async def _run(self) -> None:
        session = aiohttp.ClientSession()
        try:
            self.logger.info(f"Connecting to {self.url}")
            try:
                self._ws = await asyncio.wait_for(
                    session.ws_connect(self.url, heartbeat=self.heartbeat, autoping=True),
                    timeout=self.connect_timeout,
                )
            except asyncio.TimeoutError:
                self._dispatch(self._on_error, TransportError(f"timed out connecting to {self.url}"))
                return
            except (aiohttp.ClientError, OSError) as e:
                self._dispatch(self._on_error, TransportError(f"cannot connect to {self.url}: {e}"))
                return

            self._dispatch(self._on_open)
            if self._closing:
                return

            async for msg in self._ws:
                if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                    self._dispatch(self._on_message, msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    self._dispatch(self._on_error, TransportError(f"stream error: {self._ws.exception()}"))
                    return
                # a callback closed us; finally releases the socket
                if self._closing:
                    return

            self.logger.info(f"Stream closed by peer (code: {self._ws.close_code})")
            self._dispatch(self._on_close)

        except asyncio.CancelledError:
            # close() was called
            pass
        except (aiohttp.ClientError, OSError) as e:
            self._dispatch(self._on_error, TransportError(f"stream failed: {e}"))
        finally:
            if self._ws is not None and not self._ws.closed:
                await self._ws.close()
            await session.close()
