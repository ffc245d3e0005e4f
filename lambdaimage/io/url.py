from typing import Optional, Tuple
from urllib.parse import urlparse

from lambdaimage.io.exceptions import KeyMappingError


def is_http_url(path: str) -> bool:
    return urlparse(path).scheme in ("http", "https")


def is_s3_url(path: str) -> bool:
    return urlparse(path).scheme == "s3"


def parse_s3_url(url: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Parses an S3 URL and returns the bucket and key.
    Supports s3://bucket/key, virtual-hosted and path-style HTTP URLs.
    """
    parsed_url = urlparse(url)
    bucket: Optional[str] = None
    key: Optional[str] = None

    if parsed_url.scheme == "s3":
        bucket = parsed_url.netloc or None
        key = parsed_url.path.lstrip("/") or None
    else:
        host = parsed_url.netloc
        path = parsed_url.path.lstrip("/")
        if host and ".s3." in host:
            bucket = host.split(".s3.", 1)[0] or None
            key = path or None
        elif host and host.startswith("s3."):
            parts = path.split("/", 1)
            if parts[0]:
                bucket = parts[0]
                key = parts[1] if len(parts) > 1 else None

    if key is not None:
        key = key.lstrip("/") or None

    return bucket, key


class KeyMapper:
    """
    Maps local paths and public URLs to storage keys the remote function reads.

    A filename maps when it is an ``s3://`` URL in the configured bucket, when
    it contains the bucket name as a path segment, or when it lives under the
    upload base URL or base directory. Anything else is rejected.
    """

    def __init__(
        self,
        bucket: str,
        base_dir: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        if not bucket:
            raise ValueError("Bucket name is required for key mapping")
        self.bucket = bucket
        self.base_dir = base_dir.rstrip("/") if base_dir else None
        self.base_url = base_url.rstrip("/") if base_url else None

    @classmethod
    def from_config(cls, config) -> "KeyMapper":
        return cls(
            bucket=config.AWS_LAMBDA_IMAGE_BUCKET,
            base_dir=config.UPLOAD_BASEDIR,
            base_url=config.UPLOAD_BASEURL,
        )

    def contains_bucket(self, filename: str) -> bool:
        return f"{self.bucket}/" in filename

    def to_key(self, filename: str) -> str:
        key = self._map(filename)
        if not key:
            raise KeyMappingError("Could not map file to a storage key", data=filename)
        return key

    def _map(self, filename: str) -> Optional[str]:
        if is_s3_url(filename):
            bucket, key = parse_s3_url(filename)
            return key if bucket == self.bucket else None

        marker = f"{self.bucket}/"
        start = filename.find(marker)
        if start != -1:
            return filename[start + len(marker) :].lstrip("/")

        for base in (self.base_url, self.base_dir):
            if base and (filename == base or filename.startswith(base + "/")):
                return filename[len(base) :].lstrip("/")

        return None
