"""Upload sessions for Graph OAuth (graphoauth)."""

import logging
import os
from collections import deque
from dataclasses import dataclass, field
from typing import Any, List, Optional
from urllib.parse import quote

import requests

from graphoauth.core.client import HttpClient
from graphoauth.core.config import BYTE_RANGE_UNIT, CHUNK_SIZE, GRAPH_API_ENDPOINT, SMALL_FILE_THRESHOLD
from graphoauth.core.errors import UploadSessionError
from graphoauth.models.drive_item import DriveItem

logger = logging.getLogger(__name__)


@dataclass
class ByteRange:
    """One contiguous slice of the payload, inclusive on both ends."""

    start: int
    end: int
    data: bytes = field(repr=False)

    @property
    def content_length(self):
        return self.end - self.start + 1

    def content_range(self, size):
        return f"bytes {self.start}-{self.end}/{size}"

    def headers(self, size):
        return {
            "Content-Length": str(self.content_length),
            "Content-Range": self.content_range(size),
        }


def validate_chunk_size(chunk_size):
    if chunk_size <= 0 or chunk_size % BYTE_RANGE_UNIT != 0:
        raise ValueError(f"Chunk size must be a positive multiple of {BYTE_RANGE_UNIT} bytes (320 KiB)")
    return chunk_size


class RangeIter:
    """Splits a byte buffer into ranges Graph accepts for an upload session."""

    def __init__(self, data: bytes, chunk_size=CHUNK_SIZE):
        validate_chunk_size(chunk_size)
        self.size = len(data)
        self.chunk_size = chunk_size
        self._ranges = deque()

        view = memoryview(data)
        for start in range(0, self.size, chunk_size):
            chunk = bytes(view[start:start + chunk_size])
            self._ranges.append(ByteRange(start, start + len(chunk) - 1, chunk))

    @classmethod
    def from_reader(cls, reader, chunk_size=CHUNK_SIZE):
        return cls(reader.read(), chunk_size)

    def __iter__(self):
        return self

    def __next__(self) -> ByteRange:
        if not self._ranges:
            raise StopIteration
        return self._ranges.popleft()

    def __len__(self):
        return len(self._ranges)

    def pop_front(self):
        """Next (headers, body) pair, or None when every range was handed out."""
        if not self._ranges:
            return None
        byte_range = self._ranges.popleft()
        return byte_range.headers(self.size), byte_range.data


@dataclass
class UploadChunkResult:
    """Outcome of one chunk PUT."""

    status_code: int
    byte_range: ByteRange
    next_expected_ranges: List[str] = field(default_factory=list)
    expiration_date_time: Optional[str] = None
    drive_item: Optional[DriveItem] = None
    response: Any = field(default=None, repr=False)

    @property
    def is_complete(self):
        return self.status_code in (200, 201)


class UploadSession:
    """Drives sequential chunk PUTs against an upload URL.

    Iterating sends one chunk per step and yields an UploadChunkResult;
    202 reports progress, 200/201 carries the finished drive item.
    """

    def __init__(self, upload_url, data=b"", chunk_size=CHUNK_SIZE, http_client=None, expiration_date_time=None):
        self.upload_url = upload_url
        self.range_iter = RangeIter(data, chunk_size)
        self.http_client = http_client or HttpClient()
        self.expiration_date_time = expiration_date_time

    @classmethod
    def from_reader(cls, upload_url, reader, chunk_size=CHUNK_SIZE, http_client=None):
        return cls(upload_url, reader.read(), chunk_size, http_client)

    @property
    def size(self):
        return self.range_iter.size

    def __iter__(self):
        return self

    def __next__(self) -> UploadChunkResult:
        byte_range = next(self.range_iter)
        # The upload URL is pre-authenticated; no Authorization header
        response = self.http_client.put(
            self.upload_url, data=byte_range.data, headers=byte_range.headers(self.size)
        )
        return self._chunk_result(byte_range, response)

    def _chunk_result(self, byte_range, response):
        if response.status_code not in (200, 201, 202):
            raise UploadSessionError(
                f"Upload of {byte_range.content_range(self.size)} failed with HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
                response=response,
            )

        try:
            body = response.json() if response.content else {}
        except ValueError as e:
            raise UploadSessionError(
                f"Upload of {byte_range.content_range(self.size)} returned a non-JSON body",
                status_code=response.status_code,
                response=response,
            ) from e

        if response.status_code == 202:
            logger.debug("Uploaded %s", byte_range.content_range(self.size))
            return UploadChunkResult(
                status_code=response.status_code,
                byte_range=byte_range,
                next_expected_ranges=body.get("nextExpectedRanges", []),
                expiration_date_time=body.get("expirationDateTime"),
                response=response,
            )

        logger.debug("Upload session complete after %s", byte_range.content_range(self.size))
        return UploadChunkResult(
            status_code=response.status_code,
            byte_range=byte_range,
            drive_item=DriveItem.from_api_response(body) if body else None,
            response=response,
        )

    def upload(self, progress_callback=None) -> Optional[DriveItem]:
        """Send every remaining chunk and return the finished drive item."""
        result = None
        for result in self:
            if progress_callback:
                progress_callback(result.byte_range.content_length)
            if result.is_complete:
                break
        if result is None or not result.is_complete:
            raise UploadSessionError("Upload session ended before Graph reported completion")
        return result.drive_item

    def status(self):
        """Ask Graph which ranges it still expects."""
        response = self.http_client.get(self.upload_url)
        if not response.ok:
            raise UploadSessionError(
                f"Upload session status failed with HTTP {response.status_code}",
                status_code=response.status_code,
                response=response,
            )
        return response.json()

    def cancel(self):
        response = self.http_client.delete(self.upload_url)
        if response.status_code not in (200, 204):
            raise UploadSessionError(
                f"Upload session cancel failed with HTTP {response.status_code}",
                status_code=response.status_code,
                response=response,
            )
        return response


def create_upload_session(
    token,
    session_url,
    data,
    chunk_size=CHUNK_SIZE,
    conflict_behavior="replace",
    http_client=None,
) -> UploadSession:
    """POST createUploadSession and wrap the returned upload URL."""
    http_client = http_client or HttpClient()
    session_body = {"item": {"@microsoft.graph.conflictBehavior": conflict_behavior}}
    response = http_client.post_json(session_url, session_body, headers=token.bearer_header())
    if not response.ok:
        raise UploadSessionError(
            f"createUploadSession failed with HTTP {response.status_code}: {response.text}",
            status_code=response.status_code,
            response=response,
        )

    upload_session = response.json()
    return UploadSession(
        upload_session["uploadUrl"],
        data,
        chunk_size,
        http_client,
        expiration_date_time=upload_session.get("expirationDateTime"),
    )


class GraphUploader:
    """Uploads local files to a user's OneDrive with tokens from a credential."""

    def __init__(self, credential, http_client=None):
        """Initialize with any token credential executor."""
        self.credential = credential
        self.http_client = http_client or credential.http_client

    def get_api_base_url(self, user_id):
        """Constructs the base URL for Graph API calls, targeting a specific user."""
        return f"{GRAPH_API_ENDPOINT}/users/{user_id}/drive"

    def item_url(self, user_id, destination_path, action):
        return f"{self.get_api_base_url(user_id)}/root:/{quote(destination_path)}:/{action}"

    def upload_small_file(self, user_id, file_path, destination_path, progress_callback=None) -> DriveItem:
        """Uploads a file smaller than 4MB using a single PUT request."""
        with open(file_path, "rb") as f:
            file_data = f.read()

        headers = self.credential.get_token_silent().bearer_header()
        headers["Content-Type"] = "application/octet-stream"
        response = self.http_client.put(
            self.item_url(user_id, destination_path, "content"), data=file_data, headers=headers
        )
        if not response.ok:
            raise UploadSessionError(
                f"Upload of {destination_path} failed with HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
                response=response,
            )

        if progress_callback:
            progress_callback(len(file_data))
        return DriveItem.from_api_response(response.json())

    def upload_large_file(
        self, user_id, file_path, destination_path, chunk_size=CHUNK_SIZE, progress_callback=None
    ) -> DriveItem:
        """Uploads a file of any size using a resumable upload session."""
        with open(file_path, "rb") as f:
            session = create_upload_session(
                self.credential.get_token_silent(),
                self.item_url(user_id, destination_path, "createUploadSession"),
                f.read(),
                chunk_size=chunk_size,
                http_client=self.http_client,
            )

        try:
            return session.upload(progress_callback)
        except UploadSessionError:
            logger.warning("Cancelling upload session for %s", destination_path)
            try:
                session.cancel()
            except (UploadSessionError, requests.exceptions.RequestException) as e:
                logger.warning("Could not cancel upload session: %s", e)
            raise

    def upload_file(
        self, user_id, file_path, destination_folder=None, chunk_size=CHUNK_SIZE, progress_callback=None
    ) -> DriveItem:
        """Determines the correct upload method and executes it."""
        if not os.path.isfile(file_path):
            raise FileNotFoundError(file_path)

        file_name = os.path.basename(file_path)
        if destination_folder:
            destination_path = f"{destination_folder.strip('/')}/{file_name}"
        else:
            destination_path = file_name

        if os.path.getsize(file_path) < SMALL_FILE_THRESHOLD:
            return self.upload_small_file(user_id, file_path, destination_path, progress_callback)
        return self.upload_large_file(user_id, file_path, destination_path, chunk_size, progress_callback)
