import logging
import shutil
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from homeland.core.config import get_settings
from homeland.api.dependencies import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


@router.post("/image", status_code=status.HTTP_201_CREATED)
async def upload_image(
    image: UploadFile = File(...),
    user=Depends(get_current_user),
):
    suffix = Path(image.filename or "").suffix.lower()
    if suffix not in ALLOWED_EXTENSIONS or (
        image.content_type and not image.content_type.startswith("image/")
    ):
        raise HTTPException(status_code=400, detail="Only image files are allowed")

    upload_dir = Path(get_settings().STATIC_UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{user.id}_{uuid.uuid4().hex}{suffix}"
    dest = upload_dir / filename
    with dest.open("wb") as f:
        shutil.copyfileobj(image.file, f)
    logger.info("User %s uploaded %s", user.id, filename)
    url = f"/static/uploads/{filename}"
    return {"url": url, "filename": filename}
