"""Variable tracker: keeps a list of controller variables in sync.

The tracker owns an ordered list of :class:`Variable` objects, unique by
name and by id.  A background asyncio task polls every tracked variable
on a fixed interval and updates the list in place.  Observers register
with :meth:`VariableTracker.subscribe` to be told about inserts and
updates.

Failures of the network or the names file are logged and swallowed;
only a duplicate name is reported to the caller.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any, Protocol

from pycrosscom._constants import DEFAULT_POLL_INTERVAL, MAX_MSG_ID, VAR_LIST_FILENAME
from pycrosscom.exceptions import CrossComError, VariableAlreadyTrackedError, VariableTrackError
from pycrosscom.models.request import Callback, Request
from pycrosscom.models.variable import Variable
from pycrosscom.persistence import read_names, write_names

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RequestSender(Protocol):
    async def send_request(self, request: Request) -> Callback:
        ...


class ListChange(StrEnum):
    INSERTED = "inserted"
    UPDATED = "updated"


Listener = Callable[[ListChange, int, Variable], None]


class VariableTracker:
    """Polls tracked variables and mirrors them in an ordered list.

    Parameters
    ----------
    client : RequestSender
        An opened :class:`~pycrosscom.client.CrossComClient` (or any
        object with a compatible ``send_request``).
    poll_interval : float
        Seconds between the end of one sweep and the start of the next.
    var_list_path : Path
        Default file used by :meth:`save` and :meth:`restore`.
    clock : callable
        Returns the timestamp stored on each read.
    """

    def __init__(
        self,
        client: RequestSender,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        var_list_path: Path = Path(VAR_LIST_FILENAME),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._var_list_path = Path(var_list_path)
        self._clock = clock
        self._variables: list[Variable] = []
        self._next_id = 0
        self._listeners: list[Listener] = []
        self._task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # List access
    # ------------------------------------------------------------------

    @property
    def variables(self) -> list[Variable]:
        """Snapshot of the tracked variables in list order."""
        return list(self._variables)

    def __len__(self) -> int:
        return len(self._variables)

    def __iter__(self) -> Iterator[Variable]:
        return iter(list(self._variables))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get_by_name(name) is not None

    def get_by_id(self, id: int) -> Variable | None:
        for variable in self._variables:
            if variable.id == id:
                return variable
        return None

    def get_by_name(self, name: str) -> Variable | None:
        for variable in self._variables:
            if variable.name == name:
                return variable
        return None

    def _index_of(self, id: int) -> int | None:
        for index, variable in enumerate(self._variables):
            if variable.id == id:
                return index
        return None

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; the returned callable unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, change: ListChange, index: int, variable: Variable) -> None:
        for listener in list(self._listeners):
            try:
                listener(change, index, variable)
            except Exception:
                _logger.exception("Variable listener failed on %s of %s", change, variable.name)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _allocate_id(self) -> int:
        if self._next_id > MAX_MSG_ID:
            raise VariableTrackError("No request ids left for new variables")
        allocated = self._next_id
        self._next_id += 1
        return allocated

    async def add_variable(self, name: str) -> Variable | None:
        """Start tracking *name*, with surrounding whitespace stripped.

        Returns the new variable, or ``None`` when the initial read
        failed (the failure is logged).

        Raises
        ------
        VariableAlreadyTrackedError
            If a variable with the same name is already tracked.
        """
        name = name.strip()
        if not name:
            raise ValueError("variable name must be non-empty")
        if self.get_by_name(name) is not None:
            raise VariableAlreadyTrackedError(name)

        request = Request(id=self._allocate_id(), name=name)
        try:
            callback = await self._client.send_request(request)
        except CrossComError:
            _logger.error("Could not read %s while adding it", name, exc_info=True)
            return None

        # Another add of the same name may have completed while we awaited.
        if self.get_by_name(name) is not None:
            raise VariableAlreadyTrackedError(name)
        if not callback.ok:
            _logger.warning("Controller reported a failed read for %s", name)

        variable = Variable.from_callback(callback, updated_at=self._clock())
        self._variables.append(variable)
        self._notify(ListChange.INSERTED, len(self._variables) - 1, variable)
        return variable

    async def edit_variable(self, id: int, value: str) -> bool:
        """Write *value* to the controller variable tracked under *id*.

        Local state is left untouched; the next poll picks up the new
        value.  Returns ``True`` when the controller acknowledged the write.
        """
        variable = self.get_by_id(id)
        if variable is None:
            _logger.warning("Cannot edit unknown variable id %d", id)
            return False
        try:
            callback = await self._client.send_request(Request(id=id, name=variable.name, value=str(value)))
        except CrossComError:
            _logger.error("Could not write %s", variable.name, exc_info=True)
            return False
        if not callback.ok:
            _logger.warning("Controller rejected write of %r to %s", value, variable.name)
        return callback.ok

    def apply_callback(self, callback: Callback) -> Variable | None:
        """Merge a read response into the list.

        A known id is updated in place.  An unknown id is inserted at
        position ``id`` (clamped to the list length) unless its name is
        already tracked, in which case it is dropped.
        """
        now = self._clock()
        index = self._index_of(callback.id)
        if index is not None:
            variable = self._variables[index]
            variable.update(callback.value, callback.read_time, updated_at=now)
            self._notify(ListChange.UPDATED, index, variable)
            return variable

        if self.get_by_name(callback.name) is not None:
            _logger.warning("Ignoring response #%d: %s is tracked under another id", callback.id, callback.name)
            return None

        variable = Variable.from_callback(callback, updated_at=now)
        index = min(callback.id, len(self._variables))
        self._variables.insert(index, variable)
        self._next_id = max(self._next_id, callback.id + 1)
        self._notify(ListChange.INSERTED, index, variable)
        return variable

    async def poll_once(self) -> None:
        """Read every tracked variable once."""
        for variable in list(self._variables):
            request = Request(id=variable.id, name=variable.name)
            try:
                callback = await self._client.send_request(request)
            except CrossComError:
                _logger.error("Could not read %s", variable.name, exc_info=True)
                continue
            self.apply_callback(callback)

    async def restore(self, path: Path | None = None) -> None:
        """Add every variable named in the names file.

        Raises
        ------
        VariableAlreadyTrackedError
            If a listed name is already tracked; names before it stay added.
        """
        target = self._var_list_path if path is None else Path(path)
        try:
            names = read_names(target)
        except (OSError, UnicodeDecodeError):
            _logger.error("Could not read variable list from %s", target, exc_info=True)
            return
        for name in names:
            await self.add_variable(name)

    def save(self, path: Path | None = None) -> None:
        """Write the tracked names to the names file."""
        target = self._var_list_path if path is None else Path(path)
        try:
            write_names(target, (variable.name for variable in self._variables))
        except OSError:
            _logger.error("Could not save variable list to %s", target, exc_info=True)

    # ------------------------------------------------------------------
    # Polling lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception:
                _logger.exception("Poll sweep failed")
            await asyncio.sleep(self._poll_interval)

    def start(self) -> None:
        """Schedule the periodic poll on the running event loop."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="pycrosscom-poll")

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def __aenter__(self) -> VariableTracker:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()
