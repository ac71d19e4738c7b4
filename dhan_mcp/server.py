"""Stdio transport loop for the Dhan MCP server."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Awaitable, Callable

from dhan_mcp.client import DhanClient
from dhan_mcp.config import Settings
from dhan_mcp.dispatcher import Dispatcher
from dhan_mcp.framing import MAX_BODY_BYTES, FrameError, decode_frames, encode_frame
from dhan_mcp.schemas import ErrorCode
from dhan_mcp.tools import build_registry

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 64 * 1024

Reader = Callable[[], Awaitable[bytes]]
Writer = Callable[[bytes], None]


class StdioServer:
    """Feeds stream bytes through the frame codec into the dispatcher.

    Decoding happens on the loop in arrival order; each decoded message is
    dispatched as its own task, so responses may be written out of order.
    At most ``max_in_flight`` dispatches run at once; when the cap is reached
    the loop waits for a slot before dispatching more.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        write: Writer,
        max_in_flight: int = 16,
        max_body_bytes: int = MAX_BODY_BYTES,
    ):
        self.dispatcher = dispatcher
        self.write = write
        self.max_body_bytes = max_body_bytes
        self._slots = asyncio.Semaphore(max_in_flight)
        self._tasks: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def run(self, read: Reader) -> None:
        """Read until EOF, then wait for in-flight dispatches to finish."""
        pending = b""
        while True:
            chunk = await read()
            if not chunk:
                break
            pending = await self.feed(pending + chunk)

        if pending.strip():
            logger.warning(f"Discarding {len(pending)} bytes of incomplete frame at end of input")
        await self.drain()

    async def feed(self, buffer: bytes) -> bytes:
        """Decode and dispatch every complete frame in ``buffer``.

        Returns:
            The unconsumed remainder, to be prefixed to the next chunk
        """
        while True:
            try:
                messages, remainder = decode_frames(buffer, self.max_body_bytes)
            except FrameError as e:
                # No request id is recoverable here, so nothing is written back
                logger.error(f"Protocol parse error ({int(ErrorCode.PARSE_ERROR)}): {e.reason}")
                for message in e.messages:
                    await self._dispatch(message)
                buffer = e.resume
                continue

            for message in messages:
                await self._dispatch(message)
            return remainder

    async def drain(self) -> None:
        """Wait for every in-flight dispatch to complete."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _dispatch(self, message: Any) -> None:
        await self._slots.acquire()
        task = asyncio.create_task(self._handle(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _handle(self, message: Any) -> None:
        try:
            response = await self.dispatcher.handle(message)
            if response is not None:
                self.write(encode_frame(response))
        except Exception as e:
            logger.error(f"Failed to deliver response: {e}", exc_info=True)
        finally:
            self._slots.release()


async def read_stdin() -> bytes:
    """Read the next available chunk of stdin without blocking the loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, sys.stdin.buffer.read1, READ_CHUNK_BYTES)


def write_stdout(data: bytes) -> None:
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


async def serve_stdio(
    settings: Settings,
    read: Reader = read_stdin,
    write: Writer = write_stdout,
) -> None:
    """Run the server over stdio until the input stream closes."""
    async with DhanClient(settings) as client:
        registry = build_registry(
            client,
            max_order_quantity=settings.max_order_quantity,
            trading_enabled=settings.enable_trading_tools,
        )
        server = StdioServer(
            Dispatcher(registry),
            write,
            max_in_flight=settings.max_in_flight,
        )
        logger.info(
            f"Dhan MCP server started over stdio "
            f"({len(registry)} tools, trading {'enabled' if settings.enable_trading_tools else 'disabled'})"
        )
        await server.run(read)

    logger.info("Input closed, server stopped")


def run(settings: Settings) -> None:
    """Blocking entry point used by the CLI."""
    asyncio.run(serve_stdio(settings))
