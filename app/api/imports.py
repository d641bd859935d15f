"""Bulk import API endpoint."""

import logging
from pathlib import Path
from typing import Optional, Union

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import StreamingResponse

from app.exceptions import (
    FileTooLargeError,
    InvalidFileTypeError,
    RelatedRecordNotFoundError,
)
from app.importer.pipeline import PaperImporter
from app.importer.progress import collect_result, stream_sse
from app.schemas.imports import ImportSummary
from app.services.lookup_service import ProgramTypeService
from app.utils.dependencies import dependencies, get_importer

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSION = ".zip"
IMPORT_ACTOR = "bulk-upload"

router = APIRouter(
    prefix="/papers",
    tags=["Bulk Import"],
)


async def _read_archive(file: UploadFile, limit: int) -> bytes:
    """Read an uploaded archive, refusing non-ZIP names and oversize files."""
    filename = file.filename or ""
    if Path(filename).suffix.lower() != ARCHIVE_EXTENSION:
        raise InvalidFileTypeError([ARCHIVE_EXTENSION], filename or "unknown")

    if file.size is not None and file.size > limit:
        raise FileTooLargeError(file.size, limit)

    data = await file.read()
    if len(data) > limit:
        raise FileTooLargeError(len(data), limit)
    return data


@router.post("/bulk-upload", response_model=None)
async def bulk_upload(
    request: Request,
    file: UploadFile = File(..., description="ZIP archive with a CSV and PDFs"),
    program_type_id: Optional[int] = Form(default=None),
    stream_progress: str = Form(default="false"),
    program_types: ProgramTypeService = Depends(dependencies.program_type),
    importer: PaperImporter = Depends(get_importer),
) -> Union[ImportSummary, StreamingResponse]:
    """Import every paper described by an uploaded archive.

    Args:
        request: Incoming HTTP request.
        file: ZIP archive holding one CSV of exam metadata and the PDFs.
        program_type_id: Program type assigned to every imported paper.
        stream_progress: ``"true"`` streams Server-Sent Events instead of
            returning one summary at the end.
        program_types: ProgramTypeService instance.
        importer: PaperImporter instance.

    Returns:
        Import summary, or an event stream ending with the summary.

    Raises:
        InvalidFileTypeError: If the upload is not a .zip file.
        FileTooLargeError: If the upload exceeds the archive size limit.
        RelatedRecordNotFoundError: If the program type does not exist.
        ImportAbortedError: If the archive cannot be imported at all
            (non-streaming mode only).
    """
    settings = request.app.state.settings
    archive = await _read_archive(file, settings.max_archive_size_bytes)

    if program_type_id is not None:
        if await program_types.get_by_id(program_type_id) is None:
            raise RelatedRecordNotFoundError("program_type_id", program_type_id)

    logger.info(
        "Bulk import started",
        extra={
            "original_filename": file.filename,
            "size": len(archive),
            "program_type_id": program_type_id,
            "streaming": stream_progress.lower() == "true",
        },
    )

    events = importer.run(archive, program_type_id, created_by=IMPORT_ACTOR)

    if stream_progress.lower() == "true":
        return StreamingResponse(
            stream_sse(events),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    summary = await collect_result(events)
    return ImportSummary.model_validate(summary)
