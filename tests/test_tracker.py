"""Tests for the variable tracker poll/sync logic."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from pycrosscom._codec import encode_response
from pycrosscom.client import CrossComClient
from pycrosscom.config import CrossComConfig
from pycrosscom.exceptions import CrossComTransportError, VariableAlreadyTrackedError
from pycrosscom.models.request import Callback, Request
from pycrosscom.models.variable import Variable
from pycrosscom.tracker import ListChange, VariableTracker


@dataclass
class FakeController:
    """Answers reads from ``values``.

    Names in ``failing`` raise a transport error, names in ``broken`` a
    non-library error.
    """

    values: dict[str, str] = field(default_factory=dict)
    failing: set[str] = field(default_factory=set)
    broken: set[str] = field(default_factory=set)
    requests: list[Request] = field(default_factory=list)

    async def send_request(self, request: Request) -> Callback:
        self.requests.append(request)
        if request.name in self.failing:
            raise CrossComTransportError("connection reset", host="robot", port=7000)
        if request.name in self.broken:
            raise RuntimeError(f"unexpected failure reading {request.name}")
        if request.is_write:
            return Callback(id=request.id, name=request.name, value=request.value or "", mode=1)
        return Callback(id=request.id, name=request.name, value=self.values.get(request.name, ""), read_time=0.002)


class _LoopbackTransport:
    """Decodes request frames and answers them from ``values``."""

    def __init__(self, values: dict[str, str]) -> None:
        self.values = values
        self.frames: list[bytes] = []

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def exchange(self, frame: bytes) -> bytes:
        self.frames.append(frame)
        msg_id = int.from_bytes(frame[0:2], "big")
        name_len = int.from_bytes(frame[5:7], "big")
        name = frame[7 : 7 + name_len].decode("latin-1")
        return encode_response(msg_id, self.values.get(name, ""), mode=frame[4])


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def tick(self) -> None:
        self.now += timedelta(seconds=1)


def _names(tracker: VariableTracker) -> list[str]:
    return [variable.name for variable in tracker.variables]


@pytest.mark.asyncio
async def test_add_variable_reads_initial_value() -> None:
    controller = FakeController(values={"$OV_PRO": "100"})
    tracker = VariableTracker(controller)

    variable = await tracker.add_variable("$OV_PRO")

    assert variable is not None
    assert variable.id == 0
    assert variable.value == "100"
    assert variable.parsed == 100
    assert tracker.get_by_name("$OV_PRO") is variable
    assert "$OV_PRO" in tracker


@pytest.mark.asyncio
async def test_duplicate_add_fails_and_leaves_list_unchanged() -> None:
    controller = FakeController(values={"A": "1", "B": "2"})
    tracker = VariableTracker(controller)
    await tracker.add_variable("A")
    await tracker.add_variable("B")
    before = tracker.variables

    with pytest.raises(VariableAlreadyTrackedError) as exc_info:
        await tracker.add_variable("A")

    assert exc_info.value.name == "A"
    assert tracker.variables == before
    assert len(controller.requests) == 2


@pytest.mark.asyncio
async def test_failed_add_is_logged_and_id_not_reused(caplog: pytest.LogCaptureFixture) -> None:
    controller = FakeController(values={"B": "2"}, failing={"A"})
    tracker = VariableTracker(controller)

    assert await tracker.add_variable("A") is None
    second = await tracker.add_variable("B")

    assert len(tracker) == 1
    assert second is not None and second.id == 1
    assert "Could not read A" in caplog.text


@pytest.mark.asyncio
async def test_poll_updates_known_ids_in_place() -> None:
    clock = _Clock()
    controller = FakeController(values={"A": "1", "B": "2", "C": "3"})
    tracker = VariableTracker(controller, clock=clock)
    for name in ("A", "B", "C"):
        await tracker.add_variable(name)
    b_before = tracker.get_by_name("B")

    controller.values["B"] = "20"
    clock.tick()
    await tracker.poll_once()

    assert _names(tracker) == ["A", "B", "C"]
    b_after = tracker.get_by_name("B")
    assert b_after is b_before
    assert b_after is not None
    assert b_after.value == "20"
    assert b_after.updated_at == clock.now
    assert [request.id for request in controller.requests[-3:]] == [0, 1, 2]


def test_apply_callback_inserts_unknown_id() -> None:
    tracker = VariableTracker(FakeController())
    changes: list[tuple[ListChange, int, str]] = []
    tracker.subscribe(lambda change, index, variable: changes.append((change, index, variable.name)))

    tracker.apply_callback(Callback(id=5, name="FAR", value="1"))
    tracker.apply_callback(Callback(id=0, name="FIRST", value="2"))

    assert _names(tracker) == ["FIRST", "FAR"]
    assert changes == [(ListChange.INSERTED, 0, "FAR"), (ListChange.INSERTED, 0, "FIRST")]


@pytest.mark.asyncio
async def test_ids_stay_monotonic_after_insert_from_poll() -> None:
    tracker = VariableTracker(FakeController(values={"NEW": "1"}))
    tracker.apply_callback(Callback(id=7, name="REMOTE", value="0"))

    variable = await tracker.add_variable("NEW")

    assert variable is not None and variable.id == 8


def test_apply_callback_drops_name_tracked_under_other_id() -> None:
    tracker = VariableTracker(FakeController())
    tracker.apply_callback(Callback(id=0, name="A", value="1"))

    assert tracker.apply_callback(Callback(id=3, name="A", value="9")) is None
    assert len(tracker) == 1
    assert tracker.get_by_id(0) is not None


@pytest.mark.asyncio
async def test_poll_failures_are_swallowed() -> None:
    controller = FakeController(values={"A": "1", "B": "2"})
    tracker = VariableTracker(controller)
    await tracker.add_variable("A")
    await tracker.add_variable("B")

    controller.failing.add("A")
    controller.values["B"] = "5"
    await tracker.poll_once()

    assert tracker.get_by_name("A").value == "1"  # type: ignore[union-attr]
    assert tracker.get_by_name("B").value == "5"  # type: ignore[union-attr]


@pytest.mark.asyncio
async def test_edit_sends_write_without_touching_local_state() -> None:
    controller = FakeController(values={"$OV_PRO": "100"})
    tracker = VariableTracker(controller)
    variable = await tracker.add_variable("$OV_PRO")
    assert variable is not None

    assert await tracker.edit_variable(variable.id, "50") is True

    write = controller.requests[-1]
    assert write.is_write
    assert write.id == variable.id
    assert write.name == "$OV_PRO"
    assert write.value == "50"
    assert variable.value == "100"


@pytest.mark.asyncio
async def test_edit_unknown_id_is_ignored() -> None:
    controller = FakeController()
    tracker = VariableTracker(controller)

    assert await tracker.edit_variable(42, "1") is False
    assert controller.requests == []


@pytest.mark.asyncio
async def test_save_then_restore_reproduces_names(tmp_path: Path) -> None:
    path = tmp_path / "vars.txt"
    controller = FakeController(values={"A": "1", "B": "2", "C": "3"})
    original = VariableTracker(controller, var_list_path=path)
    for name in ("A", "B", "C"):
        await original.add_variable(name)

    original.save()
    restored = VariableTracker(controller, var_list_path=path)
    await restored.restore()

    assert path.read_text(encoding="utf-8") == "A\nB\nC"
    assert set(_names(restored)) == {"A", "B", "C"}


@pytest.mark.asyncio
async def test_save_empty_list_then_restore_adds_nothing(tmp_path: Path) -> None:
    path = tmp_path / "vars.txt"
    controller = FakeController()

    VariableTracker(controller, var_list_path=path).save()
    restored = VariableTracker(controller, var_list_path=path)
    await restored.restore()

    assert path.read_bytes() == b""
    assert len(restored) == 0
    assert controller.requests == []


@pytest.mark.asyncio
async def test_restore_skips_name_the_wire_cannot_carry(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "vars.txt"
    path.write_text("A\nVÅR_€\nC", encoding="utf-8")
    transport = _LoopbackTransport({"A": "1", "C": "3"})

    async with CrossComClient(CrossComConfig(host="robot"), transport=transport) as client:
        tracker = VariableTracker(client, var_list_path=path)
        await tracker.restore()

    assert _names(tracker) == ["A", "C"]
    assert tracker.get_by_name("C").id == 2  # type: ignore[union-attr]
    assert len(transport.frames) == 2
    assert "Could not read VÅR_€ while adding it" in caplog.text


@pytest.mark.asyncio
async def test_edit_with_unencodable_value_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    transport = _LoopbackTransport({"$OV_PRO": "100"})

    async with CrossComClient(CrossComConfig(host="robot"), transport=transport) as client:
        tracker = VariableTracker(client)
        variable = await tracker.add_variable("$OV_PRO")
        assert variable is not None

        assert await tracker.edit_variable(variable.id, '"€"') is False

    assert len(transport.frames) == 1
    assert variable.value == "100"
    assert "Could not write $OV_PRO" in caplog.text


@pytest.mark.asyncio
async def test_restore_duplicate_propagates(tmp_path: Path) -> None:
    path = tmp_path / "vars.txt"
    path.write_text("A\nB\nA", encoding="utf-8")
    tracker = VariableTracker(FakeController(), var_list_path=path)

    with pytest.raises(VariableAlreadyTrackedError):
        await tracker.restore()

    assert _names(tracker) == ["A", "B"]


@pytest.mark.asyncio
async def test_restore_missing_file_is_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    tracker = VariableTracker(FakeController(), var_list_path=tmp_path / "missing.txt")

    await tracker.restore()

    assert len(tracker) == 0
    assert "Could not read variable list" in caplog.text


def test_save_to_unwritable_path_is_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    tracker = VariableTracker(FakeController())

    tracker.save(tmp_path / "no-such-dir" / "vars.txt")

    assert "Could not save variable list" in caplog.text


@pytest.mark.asyncio
async def test_listener_errors_do_not_break_updates(caplog: pytest.LogCaptureFixture) -> None:
    tracker = VariableTracker(FakeController(values={"A": "1"}))
    seen: list[ListChange] = []

    def _broken(_change: ListChange, _index: int, _variable: Variable) -> None:
        raise RuntimeError("boom")

    tracker.subscribe(_broken)
    unsubscribe = tracker.subscribe(lambda change, _index, _variable: seen.append(change))
    await tracker.add_variable("A")
    await tracker.poll_once()
    unsubscribe()
    await tracker.poll_once()

    assert seen == [ListChange.INSERTED, ListChange.UPDATED]
    assert "Variable listener failed" in caplog.text


@pytest.mark.asyncio
async def test_background_poll_runs_until_stopped() -> None:
    controller = FakeController(values={"A": "1"})
    tracker = VariableTracker(controller, poll_interval=0.01)
    await tracker.add_variable("A")

    async with tracker:
        assert tracker.is_running
        controller.values["A"] = "2"
        for _ in range(100):
            await asyncio.sleep(0.01)
            if tracker.get_by_name("A").value == "2":  # type: ignore[union-attr]
                break

    assert tracker.is_running is False
    assert tracker.get_by_name("A").value == "2"  # type: ignore[union-attr]
    polls = len(controller.requests)
    await asyncio.sleep(0.05)
    assert len(controller.requests) == polls


@pytest.mark.asyncio
async def test_unexpected_error_aborts_sweep_but_not_polling(caplog: pytest.LogCaptureFixture) -> None:
    controller = FakeController(values={"A": "1", "B": "2"})
    tracker = VariableTracker(controller, poll_interval=0.01)
    await tracker.add_variable("A")
    await tracker.add_variable("B")
    controller.broken.add("A")
    controller.values["B"] = "20"
    tracked_requests = len(controller.requests)

    async with tracker:
        for _ in range(100):
            await asyncio.sleep(0.01)
            if len(controller.requests) >= tracked_requests + 3:
                break
        assert tracker.is_running

    polled = [request.name for request in controller.requests[tracked_requests:]]
    assert len(polled) >= 3
    # A fails first in every sweep, so B is never reached.
    assert set(polled) == {"A"}
    assert tracker.get_by_name("B").value == "2"  # type: ignore[union-attr]
    assert "Poll sweep failed" in caplog.text


@pytest.mark.asyncio
async def test_blank_name_rejected() -> None:
    tracker = VariableTracker(FakeController())

    with pytest.raises(ValueError):
        await tracker.add_variable("  ")
