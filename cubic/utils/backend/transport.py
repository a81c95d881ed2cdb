"""
Message bridge to the native backend process.

The backend is spawned as a child process and spoken to with one JSON
document per line on its standard streams::

    -> {"id": 1, "command": "get_instances", "args": {}}
    <- {"id": 1, "ok": {"success": true, "error": null, "data": {...}}}
    <- {"id": 2, "err": {"success": false, "error": {...}, "data": null}}

Replies are matched to requests by id, so several commands may be in
flight at once.
"""

import asyncio
from itertools import count
from types import TracebackType
from typing import Any, Protocol, Self

import msgspec
from loguru import logger

from cubic.utils.exception import CommandRejected, GatewayError

# Longest reply line accepted from the backend. Instance lists and encoded
# instance data easily exceed asyncio's 64 KiB default.
READ_LIMIT = 64 * 1024 * 1024


class Transport(Protocol):
    async def invoke(self, command: str, args: dict[str, Any] | None = None) -> Any:
        """Send ``command`` and return the backend's reply body."""
        ...


class _Request(msgspec.Struct):
    id: int
    command: str
    args: dict[str, Any]


class _Reply(msgspec.Struct):
    id: int
    ok: Any | msgspec.UnsetType = msgspec.UNSET
    err: Any | msgspec.UnsetType = msgspec.UNSET


class ProcessTransport:
    """JSON-lines transport over the stdin/stdout pipes of a backend process."""

    def __init__(self, command: list[str], limit: int = READ_LIMIT) -> None:
        if not command:
            raise ValueError("Backend command must not be empty")
        self.command = command
        self.limit = limit
        self._process: asyncio.subprocess.Process | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._pending: dict[int, tuple[str, asyncio.Future[Any]]] = {}
        self._ids = count(1)
        self._encoder = msgspec.json.Encoder()
        self._decoder = msgspec.json.Decoder(_Reply)

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def start(self) -> None:
        if self.running:
            return
        logger.info(f"Starting backend process: {self.command}")
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                limit=self.limit,
            )
        except OSError as e:
            raise GatewayError("start", str(e)) from e
        self._reader_task = asyncio.create_task(self._read_replies())

    async def close(self) -> None:
        process = self._process
        if process is None:
            return
        logger.debug("Stopping backend process")
        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()
        try:
            await asyncio.wait_for(process.wait(), timeout=5)
        except asyncio.TimeoutError:
            logger.warning("Backend process did not exit, killing it")
            process.kill()
            await process.wait()
        if self._reader_task is not None:
            await self._reader_task
        self._process = None

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.close()

    async def invoke(self, command: str, args: dict[str, Any] | None = None) -> Any:
        if not self.running:
            raise GatewayError(command, "backend process is not running")
        if self._reader_task is None or self._reader_task.done():
            raise GatewayError(command, "backend reply reader has stopped")
        assert self._process is not None and self._process.stdin is not None

        request_id = next(self._ids)
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = (command, future)

        line = self._encoder.encode(_Request(request_id, command, args or {}))
        logger.debug(f"-> [{request_id}] {command}")
        try:
            self._process.stdin.write(line + b"\n")
            await self._process.stdin.drain()
        except (ConnectionError, OSError) as e:
            self._pending.pop(request_id, None)
            raise GatewayError(command, str(e)) from e
        return await future

    async def _read_replies(self) -> None:
        assert self._process is not None and self._process.stdout is not None
        stdout = self._process.stdout
        reason = "backend process exited"
        try:
            while True:
                line = await stdout.readline()
                if not line:
                    logger.info("Backend process closed its output")
                    break
                self._dispatch(line)
        except (ValueError, OSError) as e:
            # ValueError: a reply line longer than the stream limit
            logger.error(f"Stopped reading backend replies: {e}")
            reason = f"reply stream failed: {e}"
        finally:
            for command, future in self._pending.values():
                if not future.done():
                    future.set_exception(GatewayError(command, reason))
            self._pending.clear()

    def _dispatch(self, line: bytes) -> None:
        try:
            reply = self._decoder.decode(line)
        except msgspec.DecodeError as e:
            logger.warning(f"Discarding unreadable backend line: {e}")
            return

        entry = self._pending.pop(reply.id, None)
        if entry is None:
            logger.warning(f"Discarding reply for unknown request {reply.id}")
            return
        command, future = entry
        if future.done():
            return
        logger.debug(f"<- [{reply.id}] {command}")
        if reply.err is not msgspec.UNSET:
            future.set_exception(CommandRejected(command, reply.err))
        elif reply.ok is not msgspec.UNSET:
            future.set_result(reply.ok)
        else:
            future.set_exception(GatewayError(command, "reply has no body"))
