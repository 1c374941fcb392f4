"""S3-compatible storage backend using requests + AWS4Auth."""

import sys
import threading
import time

import requests
from requests_aws4auth import AWS4Auth

from ioperf.benchmarks.base import OperationOutcome, RunContext
from ioperf.config import ConfigError, S3Credentials

READ_CHUNK_SIZE = 64 * 1024  # 64KB chunks
REDIRECT_CODES = (301, 302, 307, 308)


class S3StorageError(Exception):
    """Base exception for S3 storage operations."""
    pass


class S3UploadError(S3StorageError):
    """Error during S3 upload."""
    pass


class S3DownloadError(S3StorageError):
    """Error during S3 download."""
    pass


def _check_response(resp: requests.Response, error: type[S3StorageError], action: str) -> None:
    """Raise error unless resp is a plain success."""
    if resp.status_code in REDIRECT_CODES:
        location = resp.headers.get("Location", "unknown")
        raise error(f"S3 {action} redirected to: {location}")
    if resp.status_code not in (200, 201, 204):
        raise error(f"S3 {action} failed: {resp.status_code}")


def _check_length(path: str, reported: str | None, count: int) -> None:
    """Warn when the reported Content-Length disagrees with the counted bytes."""
    if reported is None:
        return
    try:
        expected = int(reported)
    except ValueError:
        print(f"\n  [WARN] Unparseable Content-Length for {path}: {reported!r} counted: {count}")
        return
    if expected != count:
        print(f"\n  [WARN] Mismatch for {path}--Content-Length: {reported} counted: {count}")


class S3Storage:
    """Storage backend for one bucket/prefix on an S3-compatible endpoint.

    Each worker thread gets its own requests.Session; sessions are not shared
    across threads.
    """

    kind = "s3"

    def __init__(
        self,
        bucket: str,
        prefix: str,
        credentials: S3Credentials,
        s3_url: str | None = None,
    ):
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self.s3_url = s3_url or f"s3://{bucket}/{self.prefix}"
        self.endpoint = credentials.endpoint_url
        self.base_url = f"{self.endpoint}/{bucket}"
        self.timeout = credentials.timeout_seconds

        # AWS4Auth with the configured region (empty works for most S3-compatible providers)
        self.auth = AWS4Auth(
            credentials.access_key, credentials.secret_key, credentials.region or "", "s3"
        )
        self._local = threading.local()
        self.name = f"S3 bucket '{bucket}' at {self.endpoint}"

    @property
    def path_prefix(self) -> str:
        return self.prefix

    def _session(self) -> requests.Session:
        """Session owned by the calling thread."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.auth = self.auth
            # Disable automatic redirect following
            session.max_redirects = 0
            self._local.session = session
        return session

    def _url(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def describe(self) -> None:
        print(f"    S3Url:       {self.s3_url}")
        print(f"    S3Bucket:    {self.bucket}")
        print(f"    Endpoint:    {self.endpoint}")

    def prepare(self, context: RunContext) -> None:
        """Check the bucket is reachable before any worker starts."""
        try:
            resp = self._session().head(self.base_url, timeout=10, allow_redirects=False)
        except requests.RequestException as e:
            raise ConfigError(f"Cannot reach S3 endpoint {self.endpoint}: {e}") from e

        if resp.status_code == 404:
            raise ConfigError(f"Bucket '{self.bucket}' does not exist. Create it first.")
        elif resp.status_code in REDIRECT_CODES:
            location = resp.headers.get("Location", "unknown")
            raise ConfigError(
                f"S3 endpoint returned redirect ({resp.status_code}) to: {location}\n"
                f"Check the endpoint and bucket configuration."
            )
        elif resp.status_code != 200:
            raise ConfigError(f"Cannot access bucket: {resp.status_code}")

    def write(self, path: str, context: RunContext) -> OperationOutcome:
        """Upload the shared payload to key path."""
        start = time.perf_counter()
        start_ms = context.millis_since_start(start)
        succeeded = False
        try:
            resp = self._session().put(
                self._url(path),
                data=context.payload,
                headers={"Content-Type": "application/octet-stream"},
                timeout=self.timeout,
                allow_redirects=False,
            )
            _check_response(resp, S3UploadError, "upload")
            succeeded = True
        except (requests.RequestException, S3StorageError) as e:
            print(f"\n  [ERROR] s3-write {path}: failed to upload file, {e}", file=sys.stderr)
        end = time.perf_counter()

        return OperationOutcome(
            operation="s3-write",
            path=path,
            succeeded=succeeded,
            bytes=len(context.payload) if succeeded else 0,
            start_time_ms=start_ms,
            duration_ms=(end - start) * 1000,
        )

    def read(self, path: str, context: RunContext) -> OperationOutcome:
        """Stream key path to exhaustion, counting bytes as they arrive."""
        count = 0
        first_block_ms = 0.0
        succeeded = False

        start = time.perf_counter()
        start_ms = context.millis_since_start(start)
        try:
            with self._session().get(
                self._url(path), timeout=self.timeout, allow_redirects=False, stream=True
            ) as resp:
                _check_response(resp, S3DownloadError, "download")
                for chunk in resp.iter_content(chunk_size=READ_CHUNK_SIZE):
                    if not chunk:
                        continue
                    if count == 0:
                        first_block_ms = (time.perf_counter() - start) * 1000
                    count += len(chunk)
                reported = resp.headers.get("Content-Length")
            _check_length(path, reported, count)
            succeeded = True
        except (requests.RequestException, S3StorageError) as e:
            print(f"\n  [ERROR] s3-read {path}: failed to download file, {e}", file=sys.stderr)
        end = time.perf_counter()

        return OperationOutcome(
            operation="s3-read",
            path=path,
            succeeded=succeeded,
            bytes=count,
            start_time_ms=start_ms,
            duration_ms=(end - start) * 1000,
            first_block_arrival_ms=first_block_ms,
        )

    def delete(self, path: str) -> bool:
        """Delete a key from S3."""
        try:
            resp = self._session().delete(self._url(path), timeout=10, allow_redirects=False)
            return resp.status_code in (200, 204, 404)  # 404 means already deleted
        except requests.RequestException:
            return False
