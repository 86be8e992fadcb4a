"""Admin endpoints for inspecting tasks and running workflows."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

router = APIRouter(tags=["admin"])


@router.get("/tasks")
async def list_tasks(request: Request) -> dict:
    """Return every registered task handler."""
    return {"tasks": request.app.state.registry.describe()}


@router.get("/flows")
async def list_flows(request: Request) -> dict:
    """Return every catalogued flow with the tasks it can schedule."""
    return {"flows": request.app.state.flows.describe()}


@router.get("/workflows")
async def list_workflows(request: Request) -> dict:
    """Return the ids of workflows currently registered as running."""
    return {"workflows": request.app.state.task_manager.running_ids()}


@router.post("/workflows/{workflow_id}/cancel")
async def cancel_workflow(workflow_id: str, request: Request) -> dict:
    if not request.app.state.executor.cancel(workflow_id):
        raise HTTPException(status_code=404, detail=f"Workflow {workflow_id} is not running")
    return {"workflow_id": workflow_id, "status": "cancelling"}
