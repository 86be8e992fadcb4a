"""Tests for WorkflowExecutor: session gating, terminal events and registry hygiene."""

from __future__ import annotations

import asyncio
import threading

from skuflow.engine.executor import WorkflowExecutor
from skuflow.engine.flows import FlowCatalog
from skuflow.engine.registry import TaskRegistry
from skuflow.engine.task_manager import TaskManager
from skuflow.engine.workflow import WorkflowEngine
from skuflow.models.messages import ExecuteWorkflowRequest
from skuflow.models.session import SessionContext
from skuflow.models.workflow import TaskResult
from tests.fakes import MemorySessionStore, RecordingChannel, ScriptedTask


def make_executor(*tasks, flows=None):
    sessions = MemorySessionStore()
    session_id = sessions.save(SessionContext(cookies={"thor": "t"}))
    manager = TaskManager()
    executor = WorkflowExecutor(WorkflowEngine(TaskRegistry(tasks)), manager, sessions, flows)
    return executor, manager, session_id


def request(task_id, session_id, stages, items):
    return ExecuteWorkflowRequest.model_validate({
        "action": "execute_workflow",
        "taskId": task_id,
        "sessionId": session_id,
        "payload": {"stages": stages, "initialContext": {"items": items}},
    })


ONE_STAGE = [{"name": "s1", "tasks": [{"name": "A", "source": "initial"}]}]


def test_successful_run_sends_single_end_and_deregisters():
    executor, manager, session_id = make_executor(ScriptedTask("A"))
    channel = RecordingChannel()

    async def go():
        run = await executor.start(request("wf-1", session_id, ONE_STAGE, ["x1"]), channel)
        await run

    asyncio.run(go())
    (end,) = channel.events("end")
    assert end["success"] is True
    assert end["taskId"] == "wf-1"
    assert end["lifecycle"]["x1"]["status"] == "completed"
    assert len(manager) == 0


def test_unknown_session_is_rejected_without_registering():
    executor, manager, _ = make_executor(ScriptedTask("A"))
    channel = RecordingChannel()

    result = asyncio.run(executor.start(request("wf-1", "missing", ONE_STAGE, ["x1"]), channel))

    assert result is None
    (end,) = channel.events("end")
    assert end["success"] is False
    assert "expired" in end["message"]
    assert len(manager) == 0


def test_configuration_error_becomes_failed_end_event():
    executor, manager, session_id = make_executor()
    channel = RecordingChannel()

    async def go():
        run = await executor.start(request("wf-1", session_id, ONE_STAGE, ["x1"]), channel)
        await run

    asyncio.run(go())
    (end,) = channel.events("end")
    assert end["success"] is False
    assert "A" in end["message"]
    assert len(manager) == 0


def test_cancel_mid_run_yields_cancelled_end():
    executor, manager, session_id = make_executor(
        ScriptedTask("A", delay=0.05), ScriptedTask("B"),
    )
    stages = ONE_STAGE + [{"name": "s2", "tasks": [{"name": "B", "source": "A"}]}]
    channel = RecordingChannel()

    async def go():
        run = await executor.start(request("wf-1", session_id, stages, ["x1"]), channel)
        await asyncio.sleep(0.01)
        assert executor.cancel("wf-1")
        await run

    asyncio.run(go())
    (end,) = channel.events("end")
    assert end["cancelled"] is True
    assert end["success"] is False
    assert len(manager) == 0


def test_disconnect_cancels_runs_of_that_channel():
    b = ScriptedTask("B")
    executor, manager, session_id = make_executor(ScriptedTask("A", delay=0.05), b)
    stages = ONE_STAGE + [{"name": "s2", "tasks": [{"name": "B", "source": "A"}]}]
    channel = RecordingChannel()

    async def go():
        run = await executor.start(request("wf-1", session_id, stages, ["x1"]), channel)
        await asyncio.sleep(0.01)
        assert executor.disconnect(channel) == 1
        await run

    asyncio.run(go())
    assert b.calls == []


def test_shutdown_cancels_running_workflows():
    executor, manager, session_id = make_executor(
        ScriptedTask("A", TaskResult(success=True, data=[{"id": "x1"}]), delay=0.05),
        ScriptedTask("B"),
    )
    stages = ONE_STAGE + [{"name": "s2", "tasks": [{"name": "B", "source": "A"}]}]
    channel = RecordingChannel()

    async def go():
        await executor.start(request("wf-1", session_id, stages, ["x1"]), channel)
        await asyncio.sleep(0)
        await executor.shutdown(grace_period=1.0)

    asyncio.run(go())
    assert channel.events("end")[0]["cancelled"] is True
    assert executor.active_runs == 0


def test_session_lookup_runs_off_the_event_loop_thread():
    executor, _, session_id = make_executor(ScriptedTask("A"))
    sessions = executor._sessions
    lookup_threads = []
    original = sessions.resolve

    def resolve(sid):
        lookup_threads.append(threading.get_ident())
        return original(sid)

    sessions.resolve = resolve

    async def go():
        loop_thread = threading.get_ident()
        run = await executor.start(request("wf-1", session_id, ONE_STAGE, ["x1"]), RecordingChannel())
        await run
        return loop_thread

    loop_thread = asyncio.run(go())
    assert lookup_threads and lookup_threads[0] != loop_thread


FLOWS = FlowCatalog([{
    "name": "clearance",
    "stages": [
        {"name": "clear", "steps": [{"task": "A", "when": ["clear"]}]},
        {"name": "withdraw", "steps": [{"task": "B", "when": ["withdraw"]}]},
    ],
}])


def flow_request(task_id, session_id, flow, options):
    return ExecuteWorkflowRequest.model_validate({
        "action": "execute_workflow",
        "taskId": task_id,
        "sessionId": session_id,
        "payload": {"flow": flow, "initialContext": {"items": ["x1"], "options": options}},
    })


def test_named_flow_runs_only_selected_steps():
    a, b = ScriptedTask("A"), ScriptedTask("B")
    executor, manager, session_id = make_executor(a, b, flows=FLOWS)
    channel = RecordingChannel()

    async def go():
        run = await executor.start(flow_request("wf-1", session_id, "clearance", {"withdraw": True}), channel)
        await run

    asyncio.run(go())
    (end,) = channel.events("end")
    assert end["success"] is True
    assert a.calls == []
    assert b.calls == [["x1"]]
    assert "Starting flow clearance with 1 stage(s)" in channel.log_messages()
    assert len(manager) == 0


def test_unknown_flow_becomes_failed_end_event():
    executor, manager, session_id = make_executor(ScriptedTask("A"), flows=FLOWS)
    channel = RecordingChannel()

    async def go():
        run = await executor.start(flow_request("wf-1", session_id, "teleport", {}), channel)
        await run

    asyncio.run(go())
    (end,) = channel.events("end")
    assert end["success"] is False
    assert "teleport" in end["message"]
    assert len(manager) == 0


def test_flow_with_nothing_selected_fails_before_dispatch():
    a = ScriptedTask("A")
    executor, _, session_id = make_executor(a, ScriptedTask("B"), flows=FLOWS)
    channel = RecordingChannel()

    async def go():
        run = await executor.start(flow_request("wf-1", session_id, "clearance", {}), channel)
        await run

    asyncio.run(go())
    (end,) = channel.events("end")
    assert end["success"] is False
    assert "enable no steps" in end["message"]
    assert a.calls == []
