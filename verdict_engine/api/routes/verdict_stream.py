"""Verdict Stream — run the daily debate while streaming its events as SSE.

Invariants:
    - Every debate event ({"type", "data"}) is forwarded as one SSE data line, in order
    - The stream always ends with a "done" event (error=True after a failure)
    - VerdictEngineError → its to_sse_event() envelope; anything else → generic error
    - Client disconnect sets the run's cancel token; the debate stops at the next
      pacing delay or in-flight agent call and nothing is persisted

Design Decisions:
    - Pipeline runs in its own task with its own DB session: the request-scoped
      session may close before a StreamingResponse finishes
    - asyncio.Queue bridges the synchronous event sink and the async generator
"""

import asyncio
import json
import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from verdict_engine.api.routes.verdicts import get_agent_invoker
from verdict_engine.core.errors import VerdictEngineError
from verdict_engine.core.repository_protocols import AgentInvokerLike
from verdict_engine.infrastructure import database as db_module
from verdict_engine.services.daily_debate import run_daily_debate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/verdicts", tags=["verdicts"])

# ADR: SSE headers prevent proxy/browser buffering of streamed events.
_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}

_STREAM_END = None


@router.get("/generate/stream")
async def stream_verdict(
    verdict_date: date | None = Query(None, alias="date"),
    force: bool = False,
    invoker: AgentInvokerLike = Depends(get_agent_invoker),
):
    """SSE variant of /generate — statement-by-statement progress."""
    queue: asyncio.Queue = asyncio.Queue()
    cancel_event = asyncio.Event()

    async def run_pipeline() -> dict:
        try:
            if db_module.db_manager is None:
                raise RuntimeError("Database not initialized")
            async with db_module.db_manager.session() as db:
                return await run_daily_debate(
                    db, invoker,
                    verdict_date=verdict_date,
                    force=force,
                    on_event=queue.put_nowait,
                    cancel_event=cancel_event,
                )
        finally:
            queue.put_nowait(_STREAM_END)

    async def event_generator():
        task = asyncio.create_task(run_pipeline())
        try:
            while (event := await queue.get()) is not _STREAM_END:
                yield _sse_line(event)
            await asyncio.wait({task})
            yield _sse_line(_final_event(task))
            yield _sse_line(_done_event(error=task.exception() is not None))
        except asyncio.CancelledError:
            logger.info("Client disconnected from verdict stream, cancelling debate")
            raise
        finally:
            if not task.done():
                cancel_event.set()
                await asyncio.gather(task, return_exceptions=True)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )


# -- Helpers -------------------------------------------------------------------

def _final_event(task: asyncio.Task) -> dict:
    """Result event on success, error envelope on failure."""
    exc = task.exception()
    if exc is None:
        return {"type": "result", "data": task.result()}
    if isinstance(exc, VerdictEngineError):
        logger.warning(
            "Verdict stream ended with %s", exc.code,
            extra={"error_code": exc.code, "verdict_date": exc.context.verdict_date},
        )
        return exc.to_sse_event()
    logger.error("Unexpected error in verdict stream: %s", exc, exc_info=exc)
    return {
        "type": "error",
        "data": {
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "severity": "critical",
            "recoverable": False,
        },
    }


def _done_event(error: bool = False) -> dict:
    return {"type": "done", "data": {"error": error}}


def _sse_line(event: dict) -> str:
    """Format event as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"
