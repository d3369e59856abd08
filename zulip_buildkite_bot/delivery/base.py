"""Abstract delivery client base class."""

from __future__ import annotations

from abc import ABC, abstractmethod


class DeliveryError(RuntimeError):
    """The chat platform did not accept a message."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class DeliveryClient(ABC):
    @property
    @abstractmethod
    def platform_name(self) -> str: ...

    @abstractmethod
    async def start(self) -> None: ...

    @abstractmethod
    async def stop(self) -> None: ...

    @abstractmethod
    async def send_message(self, channel: str, topic: str, content: str) -> None:
        """Post ``content`` to ``channel`` under ``topic``.

        Raises DeliveryError on any failure; never retries.
        """
