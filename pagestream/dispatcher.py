"""Message dispatch for the renderer channel.

Every message the renderer emits is routed here, in arrival order:

- LogMessage: echoed to the operator.
- InitialData: manifest plus any extra files the renderer wants written.
- PageProgress: one pre-rendered page.
- Errors: a page-level failure. Recorded, reported, and the build goes on.

File writes are scheduled as tasks rather than awaited one by one. ``drain``
waits for every scheduled write before the build decides its exit status.

Key class:
- MessageDispatcher: Routes messages and tracks pending writes.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, Awaitable
from typing import TYPE_CHECKING

import click

from .errors import ProtocolViolation
from .output import OutputMaterializer
from .protocol import Errors, InitialData, LogMessage, PageProgress, ProtocolMessage

if TYPE_CHECKING:
    from .build import BuildResult


class MessageDispatcher:
    """Fan out protocol messages to the output materializer.

    Attributes:
        materializer: Writes files for pages and generated content.
        result: Build result that collects errors and written routes.
    """

    def __init__(self, materializer: OutputMaterializer, result: BuildResult):
        self.materializer = materializer
        self.result = result
        self._pending: list[asyncio.Task] = []

    async def run(self, messages: AsyncIterable[ProtocolMessage]) -> BuildResult:
        """Dispatch every message from ``messages`` and wait for all writes.

        Args:
            messages: The renderer channel.

        Returns:
            The build result, complete once the channel has closed.
        """
        async for message in messages:
            self.dispatch(message)
        await self.drain()
        return self.result

    def dispatch(self, message: ProtocolMessage) -> None:
        """Handle one message.

        Raises:
            ProtocolViolation: If ``message`` is not a known message type.
        """
        if isinstance(message, LogMessage):
            click.echo(message.value)
        elif isinstance(message, InitialData):
            self._schedule(self.materializer.write_manifest(message.manifest))
            for generated in message.files_to_generate:
                click.echo(f"Generating file /{generated.path}")
                self.result.generated_files.append(generated.path)
                self._schedule(
                    self.materializer.write_raw_file(generated.path, generated.content)
                )
        elif isinstance(message, PageProgress):
            click.echo(f"Pre-rendered /{message.page.route}")
            self.result.routes.append(message.page.route)
            self._schedule(self.materializer.write_page(message.page))
        elif isinstance(message, Errors):
            self.result.record_error(message.details)
            click.echo(click.style(message.details, fg="red"), err=True)
        else:
            raise ProtocolViolation(f"Unknown message: {message!r}")

    async def drain(self) -> None:
        """Wait for every scheduled write; failed writes fail the build."""
        pending, self._pending = self._pending, []
        outcomes = await asyncio.gather(*pending, return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                detail = f"Failed to write output: {outcome}"
                self.result.record_error(detail)
                click.echo(click.style(detail, fg="red"), err=True)

    def _schedule(self, write: Awaitable) -> None:
        self._pending.append(asyncio.ensure_future(write))
