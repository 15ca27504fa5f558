"""Stdio transport — newline-delimited JSON-RPC on stdin/stdout.

Framing rules:

* blank lines are ignored;
* a line that is not valid JSON is logged to stderr and dropped, producing
  no output;
* every other line produces exactly one JSON line on stdout, even when the
  handler fails.

Each line is handled as an independent task, so responses may be written in
a different order than the requests arrived. Two handlers exist:
:class:`LocalHandler` dispatches in-process and :class:`RemoteForwarder`
relays the line to a remote ``/mcp`` endpoint.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import AsyncIterator
from typing import IO, Any, Protocol, TextIO, runtime_checkable

import httpx

from earnings_mcp import SERVER_NAME, __version__
from earnings_mcp.errors import INTERNAL_ERROR
from earnings_mcp.protocol.models import JsonRpcResponse, RequestId
from earnings_mcp.server.dispatcher import McpDispatcher, read_request_id

logger = logging.getLogger(__name__)

# Tool results can be large; the default StreamReader limit is 64 KiB.
_MAX_LINE = 16 * 1024 * 1024


@runtime_checkable
class LineHandler(Protocol):
    """Turns one decoded request line into one response object."""

    async def handle(self, line: str, envelope: Any) -> dict[str, Any]: ...


class LocalHandler:
    """Dispatches each line in-process."""

    def __init__(self, dispatcher: McpDispatcher) -> None:
        self._dispatcher = dispatcher

    async def handle(self, line: str, envelope: Any) -> dict[str, Any]:
        return await self._dispatcher.dispatch(envelope)


class RemoteForwarder:
    """Forwards each line verbatim to a remote MCP endpoint over HTTP.

    Usage::

        forwarder = RemoteForwarder("https://example.workers.dev/mcp")
        response = await forwarder.handle(line, json.loads(line))
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self._timeout = timeout
        self._transport = transport

    async def handle(self, line: str, envelope: Any) -> dict[str, Any]:
        request_id = read_request_id(envelope)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self.url,
                    content=line.encode("utf-8"),
                    headers={
                        "Content-Type": "application/json",
                        "User-Agent": f"{SERVER_NAME}-bridge/{__version__}",
                    },
                )
        except httpx.HTTPError as exc:
            logger.error("Bridge connection error: %s", exc)
            return _internal_error(request_id, f"Bridge connection error: {exc}")

        if response.is_error:
            logger.error("Remote error: HTTP %d %s", response.status_code, response.text[:200])
            return _internal_error(request_id, f"Remote server error: HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            logger.error("Remote returned non-JSON body: %r", response.text[:200])
            return _internal_error(request_id, "Remote server returned an invalid JSON response")
        if not isinstance(data, dict):
            return _internal_error(request_id, "Remote server returned a non-object response")
        return data


class StdioServer:
    """Reads request lines and writes exactly one response line per valid request.

    Usage::

        server = StdioServer(LocalHandler(dispatcher))
        await server.run()  # until stdin closes
    """

    def __init__(self, handler: LineHandler, output: TextIO | None = None) -> None:
        self._handler = handler
        self._output = output if output is not None else sys.stdout
        self._tasks: set[asyncio.Task[None]] = set()

    async def handle_line(self, line: str) -> None:
        """Process one raw input line, writing at most one output line."""
        stripped = line.strip()
        if not stripped:
            return
        try:
            envelope = json.loads(stripped)
        except ValueError as exc:
            logger.error("Parse error, dropping line: %s", exc)
            return

        try:
            response = await self._handler.handle(stripped, envelope)
        except Exception as exc:
            logger.exception("Handler failed for request line")
            response = _internal_error(read_request_id(envelope), f"Internal error: {exc}")
        self._write(response)

    async def run(self, lines: AsyncIterator[str] | None = None) -> None:
        """Consume *lines* (stdin by default) until EOF, then drain pending tasks."""
        source = lines if lines is not None else read_lines()
        async for line in source:
            task = asyncio.create_task(self.handle_line(line))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        if self._tasks:
            await asyncio.gather(*self._tasks)

    def _write(self, response: dict[str, Any]) -> None:
        self._output.write(json.dumps(response, separators=(",", ":")) + "\n")
        self._output.flush()


async def read_lines(stream: IO[Any] | None = None, *, limit: int = _MAX_LINE) -> AsyncIterator[str]:
    """Yield lines from *stream* (stdin by default) until EOF.

    Pipes and sockets are read through a :class:`asyncio.StreamReader`; a line
    longer than *limit* bytes is logged and skipped. Anything else, such as a
    redirected regular file, is read with blocking ``readline`` on a worker
    thread.
    """
    stream = stream if stream is not None else sys.stdin
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=limit)
    try:
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), stream)
    except ValueError:
        logger.debug("Input is not a pipe, reading it on a worker thread")
        while True:
            line = await asyncio.to_thread(stream.readline)
            if not line:
                return
            yield line.decode("utf-8", errors="replace") if isinstance(line, bytes) else line

    while True:
        try:
            raw = await reader.readuntil(b"\n")
        except asyncio.IncompleteReadError as exc:
            raw = exc.partial
        except asyncio.LimitOverrunError:
            logger.error("Parse error, dropping input line longer than %d bytes", limit)
            await _skip_line(reader)
            continue
        if not raw:
            return
        yield raw.decode("utf-8", errors="replace")


async def _skip_line(reader: asyncio.StreamReader) -> None:
    while True:
        try:
            await reader.readuntil(b"\n")
            return
        except asyncio.LimitOverrunError as exc:
            await reader.readexactly(exc.consumed)
        except asyncio.IncompleteReadError:
            return


def _internal_error(request_id: RequestId, message: str) -> dict[str, Any]:
    return JsonRpcResponse.failure(request_id, INTERNAL_ERROR, message).to_wire()
