import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import settings

logger = logging.getLogger(__name__)


class StorageNotConfigured(Exception):
    """Raised when an upload URL is requested without storage credentials"""


class R2Storage:
    """Handles media storage on Cloudflare R2 (or any S3-compatible bucket)"""

    def __init__(self, client=None, bucket: Optional[str] = None,
                 public_url: Optional[str] = None, endpoint: Optional[str] = None):
        """Initialize the R2 client with settings from config unless one is given"""
        self.client = client
        self.bucket = bucket or settings.R2_BUCKET_NAME
        self.public_url = (settings.R2_PUBLIC_URL if public_url is None else public_url).rstrip("/")
        self.endpoint = (settings.R2_ENDPOINT if endpoint is None else endpoint).rstrip("/")

        if self.client is not None:
            return

        logger.info("Initializing R2Storage with configuration:")
        logger.info(f"  Bucket: {self.bucket}")
        logger.info(f"  Public URL: {self.public_url or 'Not set'}")
        logger.info(f"  Endpoint: {self.endpoint or 'Not set'}")

        if all([settings.R2_ENDPOINT, settings.R2_ACCESS_KEY_ID, settings.R2_SECRET_ACCESS_KEY]):
            try:
                self.client = boto3.client(
                    's3',
                    endpoint_url=settings.R2_ENDPOINT,
                    aws_access_key_id=settings.R2_ACCESS_KEY_ID,
                    aws_secret_access_key=settings.R2_SECRET_ACCESS_KEY,
                    region_name="auto",
                )
                logger.info("R2Storage S3 client initialized successfully")
            except (BotoCoreError, ValueError) as e:
                logger.error(f"Failed to create S3 client: {str(e)}")
                logger.warning("R2 storage will not be available due to initialization failure")
        else:
            missing = []
            if not settings.R2_ENDPOINT:
                missing.append("R2_ENDPOINT")
            if not settings.R2_ACCESS_KEY_ID:
                missing.append("R2_ACCESS_KEY_ID")
            if not settings.R2_SECRET_ACCESS_KEY:
                missing.append("R2_SECRET_ACCESS_KEY")
            logger.warning(f"R2 storage not properly configured - missing: {', '.join(missing)}")

    def public_url_for(self, key: str) -> str:
        """Public URL clients use to read an uploaded object"""
        if self.public_url:
            return f"{self.public_url}/{key}"
        return f"{self.endpoint}/{self.bucket}/{key}"

    def generate_presigned_upload_url(self, key: str, content_type: str,
                                      expires_in: Optional[int] = None) -> dict:
        """Create a time-limited PUT URL for direct uploads from the client"""
        if not self.client:
            raise StorageNotConfigured("R2 storage is not configured")

        expires_in = expires_in or settings.UPLOAD_URL_EXPIRE_SECONDS
        upload_url = self.client.generate_presigned_url(
            "put_object",
            Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
            ExpiresIn=expires_in,
        )
        logger.info(f"Issued upload URL for key '{key}' valid for {expires_in}s")
        return {
            "upload_url": upload_url,
            "file_url": self.public_url_for(key),
            "key": key,
        }

    def extract_key(self, url: str) -> Optional[str]:
        """Map a public object URL back to its bucket key"""
        if not url:
            return None
        if self.public_url and url.startswith(f"{self.public_url}/"):
            return url[len(self.public_url) + 1:]
        bucket_prefix = f"{self.endpoint}/{self.bucket}/"
        if self.endpoint and url.startswith(bucket_prefix):
            return url[len(bucket_prefix):]
        return None

    def delete_file(self, url: str) -> bool:
        """Delete a file from R2 using its URL"""
        if not self.client:
            logger.warning("Attempted to delete file but R2 client is not initialized")
            return False

        key = self.extract_key(url)
        if not key:
            logger.error(f"URL {url} doesn't match any expected URL pattern")
            return False

        try:
            logger.info(f"Deleting file with key '{key}' from bucket '{self.bucket}'")
            self.client.delete_object(Bucket=self.bucket, Key=key)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete from R2: {str(e)}")
            return False

# Global instance for app-wide usage
r2_storage = R2Storage()


def get_storage() -> R2Storage:
    """Dependency returning the configured storage"""
    return r2_storage
