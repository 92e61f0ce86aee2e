from enum import Enum
from pydantic import Field

from nexusnoir.core.schemas import APIModel

class UploadType(str, Enum):
    AVATAR = "avatar"
    POST = "post"

class PresignedUploadRequest(APIModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: str
    upload_type: UploadType

class PresignedUpload(APIModel):
    upload_url: str
    file_url: str
    key: str
