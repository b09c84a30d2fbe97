"""Streaming image-edit agent endpoint."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.datastructures import UploadFile

from ..core.event_stream import STREAM_MEDIA_TYPE, encoded_session
from ..core.orchestrator import Orchestrator
from ..utils.errors import DecodeError
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def get_orchestrator(request: Request) -> Orchestrator:
    """Dependency to get the orchestrator from app state."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Edit agent not initialized")
    return orchestrator


def _parse_max_iterations(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    # "3.0" and "1e2" are numbers too; the fraction is dropped.
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        logger.warning("Ignoring invalid maxIterations", extra={"value": str(value)[:50]})
        return None


@router.post("/image-edit")
async def image_edit(
    request: Request,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """
    Run the refinement loop and stream progress events.

    Form fields: ``prompt``, one or more ``image`` files, optional
    ``maxIterations``. The body is a sequence of ``0:<json>\\n`` lines.
    """
    form = await request.form()

    prompt = str(form.get("prompt") or "").strip()
    image_files: List[UploadFile] = [
        f for f in form.getlist("image") if isinstance(f, UploadFile)
    ]
    max_iterations = _parse_max_iterations(form.get("maxIterations"))

    if not prompt:
        return JSONResponse({"error": "Missing prompt"}, status_code=400)
    if not image_files:
        return JSONResponse({"error": "Missing image files"}, status_code=400)

    uploads = [await f.read() for f in image_files]

    try:
        edit_request = orchestrator.prepare_request(prompt, uploads, max_iterations)
    except DecodeError as e:
        logger.warning(
            "Rejected undecodable upload",
            extra={"error": str(e), "filenames": [f.filename for f in image_files]}
        )
        return JSONResponse({"error": str(e)}, status_code=400)

    logger.info(
        "Image edit session accepted",
        extra={
            "image_count": len(uploads),
            "max_iterations": edit_request.max_iterations,
        }
    )

    return StreamingResponse(
        encoded_session(orchestrator, edit_request),
        media_type=STREAM_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache"},
    )
