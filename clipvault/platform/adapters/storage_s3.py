import logging
import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from clipvault.core.config import Settings
from clipvault.core.errors import ObjectNotFound
from clipvault.platform.ports.object_storage import ObjectStoragePort, StoredObject

log = logging.getLogger("storage.s3")

class S3Storage(ObjectStoragePort):
    def __init__(self, settings: Settings, client=None):
        if client is None:
            session = boto3.session.Session(
                aws_access_key_id=settings.S3_ACCESS_KEY,
                aws_secret_access_key=settings.S3_SECRET_KEY,
                region_name=settings.S3_REGION,
            )
            client = session.client(
                "s3",
                endpoint_url=settings.S3_ENDPOINT_URL,
                # path-style addressing is required for MinIO
                config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
            )
        self.s3 = client
        self.bucket = settings.S3_BUCKET

    def put_bytes(self, key: str, data: bytes, content_type: str) -> str:
        self.s3.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        return key

    def get_bytes(self, key: str) -> StoredObject:
        try:
            resp = self.s3.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise ObjectNotFound(key) from e
            raise
        return StoredObject(
            data=resp["Body"].read(),
            content_type=resp.get("ContentType") or "application/octet-stream",
        )

    def delete(self, key: str) -> None:
        self.s3.delete_object(Bucket=self.bucket, Key=key)

    def presign_download(self, key: str, expires_seconds: int = 3600) -> str:
        return self.s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_seconds,
        )

    def presign_upload(self, key: str, content_type: str, expires_seconds: int = 3600) -> dict:
        url = self.s3.generate_presigned_url(
            "put_object",
            Params={"Bucket": self.bucket, "Key": key, "ContentType": content_type},
            ExpiresIn=expires_seconds,
        )
        return {"strategy": "s3-presigned-put", "url": url, "key": key, "content_type": content_type}

    def list_keys(self, prefix: str = "") -> list[str]:
        resp = self.s3.list_objects_v2(Bucket=self.bucket, Prefix=prefix)
        return [obj["Key"] for obj in resp.get("Contents", [])]

    def check_health(self) -> bool:
        try:
            self.s3.head_bucket(Bucket=self.bucket)
            return True
        except (BotoCoreError, ClientError) as e:
            log.warning(f"Bucket {self.bucket} not reachable: {e}")
            return False
