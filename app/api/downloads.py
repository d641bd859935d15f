"""Public download endpoint for stored question papers."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from app.exceptions import RecordNotFoundError
from app.services.paper_service import DOWNLOAD_CONTENT_TYPES, PaperService
from app.utils.api_helpers import content_disposition
from app.utils.dependencies import dependencies
from app.utils.storage import LocalStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Downloads"])


@router.get("/download/{paper_id}")
async def download_paper(
    paper_id: int,
    service: PaperService = Depends(dependencies.paper),
    storage: LocalStorage = Depends(get_storage),
) -> FileResponse:
    """Send a paper's stored file as an attachment.

    The download name is the original upload name, or
    ``<subject code>_<subject name>.<file type>`` when it is unknown.

    Raises:
        RecordNotFoundError: If the paper or its stored file is missing.
    """
    paper = await service.get_by_id_or_fail(paper_id)
    stored_name = LocalStorage.name_from_url(paper.file_url)

    if not storage.exists(stored_name):
        logger.error(
            "Stored file missing for paper",
            extra={"paper_id": paper_id, "stored_name": stored_name},
        )
        raise RecordNotFoundError("File", paper_id)

    download_name = (
        paper.original_filename
        or f"{paper.subject_code}_{paper.subject_name}.{paper.file_type}"
    )
    return FileResponse(
        storage.path_for(stored_name),
        media_type=DOWNLOAD_CONTENT_TYPES.get(
            paper.file_type, "application/octet-stream"
        ),
        headers={
            "Content-Disposition": content_disposition(download_name),
            "X-Content-Type-Options": "nosniff",
            "Cache-Control": "no-cache, no-store, must-revalidate",
        },
    )
