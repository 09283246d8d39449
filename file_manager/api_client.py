import logging
import time
from email.message import Message
from typing import Any, Callable, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from file_manager.config import REQUEST_TIMEOUT, get_settings
from file_manager.schemas.files import (
    BulkItemError,
    BulkOutcome,
    DownloadedFile,
    FilePatch,
    FileRecord,
    OperationFailure,
    OperationResult,
    OperationSuccess,
    UploadItem,
)

logger = logging.getLogger("filemanager.api_client")

NETWORK_ERROR = "Network error - please check your connection"
UNEXPECTED_ERROR = "An unexpected error occurred"
MALFORMED_RESPONSE = "Malformed response from server"


def generate_zip_filename() -> str:
    return f"files-{int(time.time() * 1000)}.zip"


def _error_text(body: Any, default: str) -> str:
    if isinstance(body, dict):
        return body.get("error") or body.get("message") or default
    return default


def _disposition_filename(response: httpx.Response) -> Optional[str]:
    header = response.headers.get("content-disposition")
    if not header:
        return None
    msg = Message()
    msg["content-disposition"] = header
    return msg.get_filename()


# ── Payload parsers ─────────────────────────────────────────────────────────

def _parse_record(data: Any) -> FileRecord:
    return FileRecord.model_validate(data)


def _parse_records(data: Any) -> List[FileRecord]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError("expected a list of files")
    return [FileRecord.model_validate(item) for item in data]


def _parse_bulk_upload(requested: int) -> Callable[[Any], BulkOutcome]:
    def parse(data: Any) -> BulkOutcome:
        data = data or {}
        records = [FileRecord.model_validate(r) for r in data.get("uploaded") or []]
        errors = [BulkItemError.model_validate(e) for e in data.get("errors") or []]
        return BulkOutcome(
            requested=requested,
            succeeded=len(records),
            failed=requested - len(records),
            records=records,
            errors=errors,
        )
    return parse


def _parse_bulk_delete(file_ids: Sequence[str]) -> Callable[[Any], BulkOutcome]:
    def parse(data: Any) -> BulkOutcome:
        data = data or {}
        errors = [BulkItemError.model_validate(e) for e in data.get("errors") or []]
        if "deleted" in data:
            deleted = [str(i) for i in data["deleted"] or []]
        else:
            # Server did not itemise: everything not reported as failed is gone.
            failed_ids = {e.id for e in errors}
            deleted = [i for i in file_ids if i not in failed_ids]
        return BulkOutcome(
            requested=len(file_ids),
            succeeded=len(deleted),
            failed=len(file_ids) - len(deleted),
            deleted_ids=deleted,
            errors=errors,
        )
    return parse


class FileApiClient:
    """Async gateway to the remote file service.

    Every coroutine performs exactly one HTTP exchange and returns an
    ``OperationSuccess`` or ``OperationFailure``; nothing is raised to the
    caller. A fresh ``httpx.AsyncClient`` is opened per call so one instance
    can be shared across event loops (Streamlit runs each action in its own
    ``asyncio.run``).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    # ── Transport ───────────────────────────────────────────────────────────

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport
        ) as http:
            logger.debug(">>> %s %s", method, path)
            start = time.perf_counter()
            response = await http.request(method, path, **kwargs)
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.debug(
                "<<< %s %s | status=%d | %.1fms",
                method, path, response.status_code, elapsed_ms,
            )
            return response

    async def _exchange(self, method: str, path: str, **kwargs):
        """Returns ``(response, None)`` or ``(None, failure)`` when no reply was usable."""
        try:
            return await self._send(method, path, **kwargs), None
        except httpx.TransportError as e:
            logger.warning("%s %s — no response: %s", method, path, e)
            return None, OperationFailure(error=NETWORK_ERROR, status=0)
        except Exception as e:
            logger.error("%s %s — unexpected failure: %s", method, path, e, exc_info=True)
            return None, OperationFailure(error=str(e) or UNEXPECTED_ERROR, status=0)

    @staticmethod
    def _json_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    def _json_result(
        self, response: httpx.Response, parse: Optional[Callable[[Any], Any]] = None
    ) -> OperationResult:
        body = self._json_body(response)
        status = response.status_code

        if not response.is_success:
            return OperationFailure(error=_error_text(body, "Server error"), status=status)
        if not isinstance(body, dict):
            logger.warning("Non-JSON body from %s (status=%d)", response.request.url.path, status)
            return OperationFailure(error=MALFORMED_RESPONSE, status=status)
        if body.get("success") is False:
            return OperationFailure(error=_error_text(body, "Request failed"), status=status)

        try:
            data = parse(body.get("data")) if parse else body.get("data")
        except (ValidationError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Unexpected payload from %s: %s", response.request.url.path, e)
            return OperationFailure(error=MALFORMED_RESPONSE, status=status)
        return OperationSuccess(data=data, message=body.get("message"))

    async def _call_json(
        self, method: str, path: str, parse: Optional[Callable[[Any], Any]] = None, **kwargs
    ) -> OperationResult:
        response, failure = await self._exchange(method, path, **kwargs)
        if failure:
            return failure
        return self._json_result(response, parse)

    async def _call_binary(
        self, method: str, path: str, fallback_name: str, filename: Optional[str], message: str, **kwargs
    ) -> OperationResult:
        response, failure = await self._exchange(method, path, **kwargs)
        if failure:
            return failure
        if not response.is_success:
            body = self._json_body(response)
            return OperationFailure(error=_error_text(body, "Server error"), status=response.status_code)

        name = filename or _disposition_filename(response) or fallback_name
        downloaded = DownloadedFile(
            filename=name,
            content=response.content,
            media_type=response.headers.get("content-type"),
        )
        logger.debug("Downloaded %d bytes as '%s'", len(downloaded.content), name)
        return OperationSuccess(data=downloaded, message=message)

    # ── Listing ─────────────────────────────────────────────────────────────

    async def list_files(self) -> OperationResult:
        return await self._call_json("GET", "/files", _parse_records)

    async def get_file(self, file_id: str) -> OperationResult:
        return await self._call_json("GET", f"/files/{file_id}", _parse_record)

    # ── Upload ──────────────────────────────────────────────────────────────

    async def upload_file(self, item: UploadItem, description: str = "") -> OperationResult:
        data = {"description": description} if description else None
        logger.debug("Uploading '%s' (%d bytes)", item.name, item.size)
        return await self._call_json(
            "POST", "/files", _parse_record,
            files={"file": item.as_multipart()},
            data=data,
        )

    async def bulk_upload_files(
        self, items: Sequence[UploadItem], batch_description: str = ""
    ) -> OperationResult:
        files = [("files", item.as_multipart()) for item in items]
        data = {"batchDescription": batch_description} if batch_description else None
        logger.debug("Bulk uploading %d files", len(items))
        return await self._call_json(
            "POST", "/files/bulk-upload", _parse_bulk_upload(len(items)),
            files=files,
            data=data,
        )

    # ── Update / delete ─────────────────────────────────────────────────────

    async def update_file(self, file_id: str, patch: FilePatch) -> OperationResult:
        return await self._call_json(
            "PUT", f"/files/{file_id}", _parse_record, json=patch.to_payload()
        )

    async def delete_file(self, file_id: str) -> OperationResult:
        return await self._call_json("DELETE", f"/files/{file_id}")

    async def bulk_delete_files(self, file_ids: Sequence[str]) -> OperationResult:
        ids = [str(i) for i in file_ids]
        return await self._call_json(
            "POST", "/files/bulk-delete", _parse_bulk_delete(ids), json={"fileIds": ids}
        )

    # ── Download ────────────────────────────────────────────────────────────

    async def download_file(self, file_id: str, filename: Optional[str] = None) -> OperationResult:
        return await self._call_binary(
            "GET", f"/files/{file_id}/download",
            fallback_name=f"file-{file_id}",
            filename=filename,
            message="File downloaded successfully",
        )

    async def bulk_download_files(
        self, file_ids: Sequence[str], zip_filename: Optional[str] = None
    ) -> OperationResult:
        ids = [str(i) for i in file_ids]
        return await self._call_binary(
            "POST", "/files/bulk-download",
            fallback_name=generate_zip_filename(),
            filename=zip_filename,
            message="Files downloaded successfully as ZIP",
            json={"fileIds": ids},
        )

    def get_download_url(self, file_id: str) -> str:
        return f"{self.base_url}/files/{file_id}/download"


def get_api_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> FileApiClient:
    settings = get_settings()
    return FileApiClient(settings.api_root, transport=transport)
