from fastapi import APIRouter, HTTPException, Depends, status
from botocore.exceptions import BotoCoreError, ClientError
from ..user_management.models.user import User
from ...core.storage import R2Storage, StorageNotConfigured, get_storage
from ...core.config import settings
from ...deps import get_current_active_user
from .schemas import PresignedUpload, PresignedUploadRequest
from .service import InvalidFileType, MediaService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{settings.API_V1_STR}/upload", tags=["upload"])

def get_media_service(storage: R2Storage = Depends(get_storage)):
    return MediaService(storage)

@router.post("/presigned", response_model=PresignedUpload)
def create_presigned_upload(
    request: PresignedUploadRequest,
    current_user: User = Depends(get_current_active_user),
    media_service: MediaService = Depends(get_media_service),
):
    try:
        return media_service.create_upload_url(current_user.id, request)
    except InvalidFileType:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid file type")
    except StorageNotConfigured:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Media storage is not configured")
    except (BotoCoreError, ClientError) as e:
        logger.error(f"Failed to generate upload URL: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to generate upload URL")
