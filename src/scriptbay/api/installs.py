"""Install routes: streamed runs and background runs with polling."""

import asyncio
import json
import logging
import uuid
from typing import Any

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from fastapi.responses import StreamingResponse

from scriptbay.models import InstallCreated, InstallRequest, InstallRunResult
from scriptbay.services.runner import InstallerRunner, QueueSink, RunOutcome, RunState

logger = logging.getLogger(__name__)

router = APIRouter()

OUTPUT_EVENT = "install-output"
DONE_EVENT = "install-done"

# In-memory run storage, lost on restart
_runs: dict[str, InstallRunResult] = {}


def _sse(event: str, data: dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


class _RecordSink:
    """Appends output lines to a stored run."""

    def __init__(self, record: InstallRunResult) -> None:
        self.record = record

    def emit(self, line: str) -> None:
        self.record.output.append(line)


async def _run_install(runner: InstallerRunner, run_id: str) -> None:
    """Background task: run the installer and store the outcome."""
    record = _runs[run_id]

    def on_state(state: RunState) -> None:
        record.state = state

    try:
        record.outcome = await runner.run(record.script, _RecordSink(record), on_state)
    except Exception as exc:
        logger.exception("Install run %s failed", run_id)
        record.state = RunState.failed
        record.outcome = RunOutcome(success=False, error=str(exc))


@router.post("/install")
async def install(body: InstallRequest, request: Request) -> StreamingResponse:
    """Run an installer and stream its output as server-sent events.

    One ``install-output`` event per line, then a single ``install-done``
    event carrying the outcome. Disconnecting cancels the run.
    """
    runner: InstallerRunner = request.app.state.runner

    async def events():
        queue: asyncio.Queue[str | None] = asyncio.Queue()
        task = asyncio.create_task(runner.run(body.script, QueueSink(queue)))
        task.add_done_callback(lambda _: queue.put_nowait(None))
        try:
            while (line := await queue.get()) is not None:
                yield _sse(OUTPUT_EVENT, {"line": line})
            try:
                outcome = task.result()
            except Exception as exc:
                logger.exception("Install of %s failed", body.script)
                outcome = RunOutcome(success=False, error=str(exc))
            yield _sse(DONE_EVENT, outcome.model_dump())
        finally:
            if not task.done():
                task.cancel()

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/installs", status_code=202, response_model=InstallCreated)
async def start_install(
    body: InstallRequest, request: Request, background: BackgroundTasks
) -> InstallCreated:
    """Accept an install run in the background; poll it for output."""
    run_id = f"run_{uuid.uuid4().hex[:16]}"
    _runs[run_id] = InstallRunResult(
        run_id=run_id, script=body.script, state=RunState.idle
    )
    background.add_task(_run_install, request.app.state.runner, run_id)
    return InstallCreated(run_id=run_id, poll_url=f"/installs/{run_id}")


@router.get("/installs/{run_id}", response_model=InstallRunResult)
async def get_install(run_id: str) -> InstallRunResult:
    """Poll a background install run."""
    if run_id not in _runs:
        raise HTTPException(status_code=404, detail=f"Install run {run_id} not found")
    return _runs[run_id]
