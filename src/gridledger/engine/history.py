"""Undo/redo command history with merging of rapid edits."""

import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Hashable, Optional, Union

from ..config import settings
from ..grid.models import _utc_now

Action = Callable[[], Union[None, Awaitable[None]]]
ApplyCallback = Callable[[str, str, Any], Union[None, Awaitable[None]]]


async def _run(action: Action) -> None:
    result = action()
    if inspect.isawaitable(result):
        await result


@dataclass
class SimpleCommand:
    """A reversible action, optionally mergeable with a later command of the same key."""

    forward: Action
    inverse: Action
    description: str
    merge_key: Optional[Hashable] = None
    merge_window: Optional[float] = None  # seconds; None uses the history default
    timestamp: datetime = field(default_factory=_utc_now)

    async def execute(self) -> None:
        await _run(self.forward)

    async def undo(self) -> None:
        await _run(self.inverse)

    async def redo(self) -> None:
        await self.execute()


@dataclass
class BatchCommand:
    """Runs inner commands in order and undoes them in reverse order."""

    commands: list["Command"]
    description: str
    timestamp: datetime = field(default_factory=_utc_now)

    async def execute(self) -> None:
        """Run inner commands in order. If one fails, the ones already run are undone."""
        applied: list["Command"] = []
        try:
            for command in self.commands:
                await command.execute()
                applied.append(command)
        except Exception:
            for command in reversed(applied):
                await command.undo()
            raise

    async def undo(self) -> None:
        for command in reversed(self.commands):
            await command.undo()

    async def redo(self) -> None:
        await self.execute()


Command = Union[SimpleCommand, BatchCommand]


@dataclass
class CellEdit:
    """Old and new value of one cell, used to build edit commands."""

    row_id: str
    column_name: str
    old_value: Any
    new_value: Any


def try_merge(
    existing: Command,
    incoming: Command,
    default_window: Optional[float] = None,
) -> Optional[SimpleCommand]:
    """
    Combine two commands into one undo step if they touch the same target.

    Both must be simple commands with the same merge key, created less than
    the merge window apart. The merged command undoes to the state before
    ``existing`` and redoes to the state after ``incoming``.

    Returns:
        The merged command, or None if the commands do not merge
    """
    if not isinstance(existing, SimpleCommand) or not isinstance(incoming, SimpleCommand):
        return None
    if existing.merge_key is None or existing.merge_key != incoming.merge_key:
        return None

    window = existing.merge_window
    if window is None:
        window = default_window if default_window is not None else settings.merge_window_seconds

    elapsed = abs((incoming.timestamp - existing.timestamp).total_seconds())
    if elapsed >= window:
        return None

    return SimpleCommand(
        forward=incoming.forward,
        inverse=existing.inverse,
        description=incoming.description,
        merge_key=existing.merge_key,
        merge_window=existing.merge_window,
        timestamp=incoming.timestamp,
    )


def cell_edit_command(
    row_id: str,
    column_name: str,
    old_value: Any,
    new_value: Any,
    apply: ApplyCallback,
    merge_window: Optional[float] = None,
    timestamp: Optional[datetime] = None,
) -> SimpleCommand:
    """Build a mergeable command that sets one cell and restores it on undo."""
    return SimpleCommand(
        forward=lambda: apply(row_id, column_name, new_value),
        inverse=lambda: apply(row_id, column_name, old_value),
        description=f"Edit cell {column_name}",
        merge_key=("cell_edit", row_id, column_name),
        merge_window=merge_window,
        timestamp=timestamp or _utc_now(),
    )


def bulk_edit_command(
    changes: list[CellEdit],
    apply: ApplyCallback,
    description: Optional[str] = None,
) -> BatchCommand:
    """Build one undo step covering many cell edits."""
    commands: list[Command] = [
        SimpleCommand(
            forward=lambda c=change: apply(c.row_id, c.column_name, c.new_value),
            inverse=lambda c=change: apply(c.row_id, c.column_name, c.old_value),
            description=f"Edit cell {change.column_name}",
        )
        for change in changes
    ]
    return BatchCommand(
        commands=commands,
        description=description or f"Bulk edit {len(changes)} cells",
    )


class CommandHistory:
    """
    Linear undo/redo history.

    The cursor points at the last executed, not yet undone command (-1 when
    there is none). Executing after an undo discards the redo tail. Only one
    command may run at a time; calls made while a command is in flight are
    rejected and return False.
    """

    def __init__(
        self,
        max_size: Optional[int] = None,
        merge_window_seconds: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.max_size = max_size if max_size is not None else settings.max_history_size
        self.merge_window_seconds = (
            merge_window_seconds if merge_window_seconds is not None else settings.merge_window_seconds
        )
        self.logger = logger or logging.getLogger(__name__)
        self._history: list[Command] = []
        self._index = -1
        self._busy = False

    @property
    def is_busy(self) -> bool:
        return self._busy

    def __len__(self) -> int:
        return len(self._history)

    async def execute(self, command: Command) -> bool:
        """
        Run a command and commit it to the history.

        If the command merges with the one at the cursor, the merged command
        takes its place instead of adding an entry.

        Returns:
            True if the command ran, False if another command was in flight
        """
        if self._busy:
            self.logger.debug(f"Rejected '{command.description}': a command is already running")
            return False

        self._busy = True
        try:
            await command.execute()

            # No branching: whatever was undone is gone once something new is committed
            del self._history[self._index + 1 :]

            if self._index >= 0:
                merged = try_merge(self._history[self._index], command, self.merge_window_seconds)
                if merged is not None:
                    self._history[self._index] = merged
                    self.logger.debug(f"Merged '{command.description}' into previous command")
                    return True

            self._history.append(command)
            self._index += 1

            overflow = len(self._history) - self.max_size
            if overflow > 0:
                del self._history[:overflow]
                self._index -= overflow
                self.logger.debug(f"Evicted {overflow} command(s) from history")
            return True
        finally:
            self._busy = False

    async def undo(self) -> bool:
        """Undo the command at the cursor. Returns False if there is nothing to undo."""
        if self._busy or not self.can_undo():
            return False

        self._busy = True
        try:
            command = self._history[self._index]
            await command.undo()
            self._index -= 1
            self.logger.debug(f"Undid '{command.description}'")
            return True
        finally:
            self._busy = False

    async def redo(self) -> bool:
        """Redo the command after the cursor. Returns False if there is nothing to redo."""
        if self._busy or not self.can_redo():
            return False

        self._busy = True
        try:
            command = self._history[self._index + 1]
            await command.redo()
            self._index += 1
            self.logger.debug(f"Redid '{command.description}'")
            return True
        finally:
            self._busy = False

    def can_undo(self) -> bool:
        return self._index >= 0

    def can_redo(self) -> bool:
        return self._index < len(self._history) - 1

    def status(self) -> dict:
        return {
            "can_undo": self.can_undo(),
            "can_redo": self.can_redo(),
            "undo_description": self._history[self._index].description if self.can_undo() else None,
            "redo_description": self._history[self._index + 1].description if self.can_redo() else None,
            "history_size": len(self._history),
        }

    def entries(self) -> list[dict]:
        """History for display, oldest first."""
        return [
            {
                "description": command.description,
                "timestamp": command.timestamp,
                "is_current": index == self._index,
            }
            for index, command in enumerate(self._history)
        ]

    def clear(self) -> None:
        self._history = []
        self._index = -1
