import asyncio
from collections import defaultdict
from pathlib import Path
from typing import Any, Generator

import pytest
from loguru import logger
from PySide6.QtCore import QCoreApplication

from cubic.controllers.instance_store import InstanceStore
from cubic.utils.app_info import AppInfo
from cubic.utils.backend.gateway import CommandGateway


class FakeTransport:
    """
    Scripted stand-in for the backend bridge.

    Queue a reply per command; a queued exception is raised, a queued
    future is awaited first, which lets a test decide when a call resolves.
    """

    def __init__(self) -> None:
        self.replies: dict[str, list[Any]] = defaultdict(list)
        self.calls: list[tuple[str, dict[str, Any] | None]] = []

    def queue(self, command: str, reply: Any) -> None:
        self.replies[command].append(reply)

    async def invoke(self, command: str, args: dict[str, Any] | None = None) -> Any:
        self.calls.append((command, args))
        if not self.replies[command]:
            raise AssertionError(f"No reply queued for {command}")
        reply = self.replies[command].pop(0)
        if isinstance(reply, asyncio.Future):
            reply = await reply
        if isinstance(reply, BaseException):
            raise reply
        return reply


def ok_reply(data: dict[str, Any] | None) -> dict[str, Any]:
    return {"success": True, "error": None, "data": data}


def error_reply(error_type: str, message: str | None = None) -> dict[str, Any]:
    error: dict[str, Any] = {"error_type": error_type}
    if message is not None:
        error["error_message"] = message
    return {"success": False, "error": error, "data": None}


def instance_wire(
    name: str = "Modpack",
    loader: str = "Fabric",
    version: str = "1.20.4",
    custom_args: list[str] | None = None,
    downloaded: bool = True,
) -> dict[str, Any]:
    return {
        "name": name,
        "loader": loader,
        "version": version,
        "custom_args": custom_args or [],
        "downloaded": downloaded,
    }


@pytest.fixture(scope="session")
def qapp() -> Generator[QCoreApplication, None, None]:
    """Create a core application for tests that use Qt objects."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app  # type: ignore[misc]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def gateway(transport: FakeTransport) -> CommandGateway:
    return CommandGateway(transport)


@pytest.fixture
def store(qapp: QCoreApplication, gateway: CommandGateway) -> InstanceStore:
    """A fresh store per test; there is no shared global state."""
    return InstanceStore(gateway)


@pytest.fixture
def app_info(tmp_path: Path) -> AppInfo:
    return AppInfo(storage_folder=tmp_path / "data", log_folder=tmp_path / "logs")


@pytest.fixture
def log_messages() -> Generator[list[str], None, None]:
    """Collect loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]), level="DEBUG"
    )
    yield messages
    logger.remove(handler_id)
