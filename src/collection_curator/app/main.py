from __future__ import annotations

import logging
import uuid
from typing import Callable, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException

from collection_curator.application.registry import Registry
from collection_curator.application.run_context import OPERATION_COHORT, OPERATION_RESORT, RunContext
from collection_curator.application.runner import Runner
from collection_curator.app.api.models import (
    CancelResponse,
    CohortRunResponse,
    JobStartedResponse,
    JobStatusResponse,
    ResortRunResponse,
    RunRequest,
)
from collection_curator.app.factory import create_adapters
from collection_curator.app.health import router as health_router
from collection_curator.app.job_manager import job_manager
from collection_curator.observability.logging import configure_logging, log_extra

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Collection Curator")
app.include_router(health_router)

registry = Registry()


def _new_correlation_id(req: Optional[RunRequest]) -> str:
    if req and req.correlation_id:
        return req.correlation_id
    return f"auto-{uuid.uuid4().hex[:8]}"


def _build_runner(correlation_id: str, cancellation_check: Optional[Callable[[], bool]] = None) -> Runner:
    gateway, settings_store, event_publisher, lock_manager = create_adapters(correlation_id=correlation_id)
    return Runner(
        gateway=gateway,
        settings_store=settings_store,
        event_publisher=event_publisher,
        lock_manager=lock_manager,
        registry=registry,
        cancellation_check=cancellation_check,
    )


def _resort_context(tenant_id: str, collection_id: str, req: Optional[RunRequest], correlation_id: str) -> RunContext:
    return RunContext.from_args(
        tenant_id=tenant_id,
        operation=OPERATION_RESORT,
        target=collection_id,
        as_of_ts=req.as_of_ts if req else None,
        correlation_id=correlation_id,
    )


@app.post("/v1/tenants/{tenant_id}/cohorts/{cohort}/run", response_model=CohortRunResponse)
def run_cohort(tenant_id: str, cohort: str, req: Optional[RunRequest] = None) -> dict:
    """Classify one cohort and converge its tag synchronously."""
    if cohort not in registry.names():
        raise HTTPException(status_code=404, detail=f"Unknown cohort {cohort}")
    correlation_id = _new_correlation_id(req)
    ctx = RunContext.from_args(
        tenant_id=tenant_id,
        operation=OPERATION_COHORT,
        target=cohort,
        as_of_ts=req.as_of_ts if req else None,
        correlation_id=correlation_id,
    )
    return _build_runner(correlation_id).run_cohort(ctx).to_dict()


def _run_resort_in_background(ctx: RunContext) -> None:
    correlation_id = ctx.correlation_id.value
    try:
        runner = _build_runner(correlation_id, job_manager.cancellation_check(correlation_id))
    except Exception as e:
        logger.exception(f"Background resort could not start: {e}", extra=log_extra(correlation_id))
        job_manager.record_error(correlation_id, str(e))
        return
    job_manager.record_result(correlation_id, runner.run_resort(ctx))


@app.post("/v1/tenants/{tenant_id}/collections/{collection_id}/resort", response_model=JobStartedResponse)
async def start_resort(
    tenant_id: str,
    collection_id: str,
    background_tasks: BackgroundTasks,
    req: Optional[RunRequest] = None,
) -> dict:
    """
    Start a collection reorder. Returns immediately with correlation_id.
    The job runs in the background. Use /status/{correlation_id} to check progress.
    """
    ctx = _resort_context(tenant_id, collection_id, req, _new_correlation_id(req))
    job_manager.cleanup_old_jobs()
    job_manager.register(ctx)
    background_tasks.add_task(_run_resort_in_background, ctx)
    return {"correlation_id": ctx.correlation_id.value}


@app.post("/v1/tenants/{tenant_id}/collections/{collection_id}/resort/sync", response_model=ResortRunResponse)
def run_resort_sync(tenant_id: str, collection_id: str, req: Optional[RunRequest] = None) -> dict:
    """Run a collection reorder synchronously (blocks until the job is done or polling gives up)."""
    correlation_id = _new_correlation_id(req)
    ctx = _resort_context(tenant_id, collection_id, req, correlation_id)
    return _build_runner(correlation_id).run_resort(ctx).to_dict()


@app.post("/cancel/{correlation_id}", response_model=CancelResponse)
def cancel_job(correlation_id: str) -> dict:
    if not job_manager.cancel(correlation_id):
        raise HTTPException(
            status_code=404,
            detail=f"Job {correlation_id} not found or cannot be cancelled (may already be completed/failed)",
        )
    return {"correlation_id": correlation_id}


@app.get("/status/{correlation_id}", response_model=JobStatusResponse)
def get_job_status(correlation_id: str) -> dict:
    """
    Get the status of a background job.

    Returns:
        Job status including result if finished
    """
    job = job_manager.get(correlation_id)
    if not job:
        raise HTTPException(status_code=404, detail=f"Job {correlation_id} not found")

    return {
        "correlation_id": job.correlation_id,
        "tenant_id": job.tenant_id,
        "target": job.target,
        "status": job.phase.value,
        "started_at": job.started_at,
        "completed_at": job.completed_at,
        "duration_ms": job.duration_ms,
        "result": job.result,
        "error": job.error,
    }
