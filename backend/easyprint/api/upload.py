import logging

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from easyprint.models.enums import UploadFolder
from easyprint.services.uploads import UploadError, UploadService

logger = logging.getLogger(__name__)
router = APIRouter()


def save_upload(content: bytes, filename: str, content_type: str, folder: UploadFolder) -> dict:
    logger.debug("Upload filename=%s type=%s size=%s folder=%s", filename, content_type, len(content), folder.value)
    try:
        return UploadService().save(content, filename, content_type or "", folder)
    except UploadError as e:
        logger.warning("Upload rejected filename=%s: %s", filename, e)
        raise HTTPException(status_code=400, detail=str(e))


async def store_upload(file: UploadFile, folder: UploadFolder) -> dict:
    content = await file.read()
    return await run_in_threadpool(save_upload, content, file.filename, file.content_type or "", folder)


@router.post("")
async def upload_file(
    file: UploadFile = File(...),
    type: UploadFolder = Form(UploadFolder.DOCUMENTS),
):
    """Store a document or payment screenshot and return its public URL and page count."""
    result = await store_upload(file, type)
    return {"success": True, **result}
