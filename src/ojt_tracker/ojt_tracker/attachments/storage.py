"""Private object storage for task attachments.

Objects are never public; readers get a short-lived signed URL. ``S3ObjectStorage``
uses a presigned GET, ``LocalObjectStorage`` keeps files on disk and signs a
timed token served back by ``/files/<token>``.
"""
from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..core.constants import SIGNED_URL_TTL_SECONDS
from ..core.exceptions import BackendError, NotFoundError, ValidationError


class ObjectStorage(Protocol):
    def upload(self, path: str, data: bytes, *, content_type: str) -> None:
        raise NotImplementedError

    def remove(self, paths: Sequence[str]) -> None:
        raise NotImplementedError

    def create_signed_url(self, path: str, *, expires_in: int = SIGNED_URL_TTL_SECONDS) -> str:
        raise NotImplementedError


class S3ObjectStorage(ObjectStorage):
    def __init__(self, bucket: str, *, prefix: str = "", client=None):
        if not bucket:
            raise ValueError("S3 bucket name is required")
        self._bucket = bucket
        self._prefix = prefix
        self._client = client or boto3.client("s3")

    def _key(self, path: str) -> str:
        return self._prefix + path

    def upload(self, path: str, data: bytes, *, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=self._key(path),
                Body=data,
                ContentType=content_type or "application/octet-stream",
                ServerSideEncryption="AES256",
            )
        except (BotoCoreError, ClientError) as e:
            raise BackendError(f"Upload failed: {e}") from e

    def remove(self, paths: Sequence[str]) -> None:
        if not paths:
            return
        try:
            self._client.delete_objects(
                Bucket=self._bucket,
                Delete={"Objects": [{"Key": self._key(p)} for p in paths], "Quiet": True},
            )
        except (BotoCoreError, ClientError) as e:
            raise BackendError(f"Delete failed: {e}") from e

    def create_signed_url(self, path: str, *, expires_in: int = SIGNED_URL_TTL_SECONDS) -> str:
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._bucket, "Key": self._key(path)},
                ExpiresIn=int(expires_in),
            )
        except (BotoCoreError, ClientError) as e:
            raise BackendError(f"Could not sign URL: {e}") from e


class LocalObjectStorage(ObjectStorage):
    """Filesystem store for development.

    Note: signed URLs point at ``url_prefix`` + token; ``resolve_token`` turns
    a token back into a file path once it has been verified.
    """

    SALT = "task-attachment"

    def __init__(self, root: str | Path, *, secret_key: str, url_prefix: str = "/files/"):
        self._root = Path(root).resolve()
        self._serializer = URLSafeTimedSerializer(secret_key, salt=self.SALT)
        self._url_prefix = url_prefix

    def _file(self, path: str) -> Path:
        target = (self._root / path).resolve()
        if self._root not in target.parents:
            raise ValidationError("Invalid storage path.")
        return target

    def upload(self, path: str, data: bytes, *, content_type: str) -> None:
        target = self._file(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise BackendError(f"Upload failed: {e}") from e

    def remove(self, paths: Sequence[str]) -> None:
        for p in paths:
            try:
                self._file(p).unlink(missing_ok=True)
            except OSError as e:
                raise BackendError(f"Delete failed: {e}") from e

    def create_signed_url(self, path: str, *, expires_in: int = SIGNED_URL_TTL_SECONDS) -> str:
        self._file(path)
        token = self._serializer.dumps({"path": path, "ttl": int(expires_in)})
        return f"{self._url_prefix}{token}"

    def resolve_token(self, token: str) -> Path:
        try:
            ttl = int(self._serializer.loads(token).get("ttl", SIGNED_URL_TTL_SECONDS))
            payload = self._serializer.loads(token, max_age=ttl)
        except SignatureExpired:
            raise NotFoundError("This link has expired.")
        except BadSignature:
            raise NotFoundError("File not found.")

        target = self._file(payload["path"])
        if not target.is_file():
            raise NotFoundError("File not found.")
        return target
