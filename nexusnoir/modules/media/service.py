import logging
import re
import time
import uuid

from nexusnoir.core.storage import R2Storage
from nexusnoir.modules.media.schemas import PresignedUpload, PresignedUploadRequest

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/png", "image/gif", "image/webp"]
ALLOWED_VIDEO_TYPES = ["video/mp4", "video/quicktime", "video/webm"]
ALLOWED_CONTENT_TYPES = ALLOWED_IMAGE_TYPES + ALLOWED_VIDEO_TYPES

class InvalidFileType(ValueError):
    pass

def sanitize_file_name(file_name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.-]", "_", file_name)

def build_object_key(user_id: str, file_name: str, upload_type: str) -> str:
    """Unique bucket key, grouped by upload kind and owner"""
    timestamp = int(time.time() * 1000)
    random_part = uuid.uuid4().hex[:8]
    return f"{upload_type}s/{user_id}/{timestamp}-{random_part}-{sanitize_file_name(file_name)}"

class MediaService:
    def __init__(self, r2_storage: R2Storage):
        self.r2_storage = r2_storage

    def create_upload_url(self, user_id: str, request: PresignedUploadRequest) -> PresignedUpload:
        """Issue a direct-to-bucket upload URL for one file"""
        if request.file_type not in ALLOWED_CONTENT_TYPES:
            raise InvalidFileType(request.file_type)

        key = build_object_key(user_id, request.file_name, request.upload_type.value)
        presigned = self.r2_storage.generate_presigned_upload_url(key, request.file_type)
        logger.info(f"User {user_id} requested {request.upload_type.value} upload {key}")
        return PresignedUpload(**presigned)
