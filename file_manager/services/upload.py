import enum
import logging
from typing import List, Optional, Sequence, Tuple

from file_manager.api_client import FileApiClient
from file_manager.schemas.files import (
    BulkOutcome,
    OperationFailure,
    OperationResult,
    UploadItem,
)
from file_manager.services.banners import BannerBoard
from file_manager.services.base import Orchestrator
from file_manager.services.file_list import FileListOrchestrator
from file_manager.services.presentation import format_byte_size

logger = logging.getLogger("filemanager.services.upload")

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class UploadState(str, enum.Enum):
    IDLE = "idle"
    BATCH_PENDING = "batchPending"
    UPLOADING = "uploading"


class UploadOrchestrator(Orchestrator):
    """Single and batch uploads.

    ``idle -> uploading -> idle`` for one file, ``idle -> batchPending ->
    uploading -> idle`` for several. New requests are refused only while
    ``uploading``. Listeners receive the new ``UploadState``.
    """

    def __init__(self, api: FileApiClient, file_list: FileListOrchestrator, banners: BannerBoard):
        super().__init__()
        self.api = api
        self.file_list = file_list
        self.banners = banners
        self.description = ""
        self._state = UploadState.IDLE
        self._batch: Tuple[UploadItem, ...] = ()
        self.last_outcome: Optional[BulkOutcome] = None

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def batch(self) -> Tuple[UploadItem, ...]:
        return self._batch

    def _transition(self, state: UploadState):
        logger.debug("Upload state %s -> %s", self._state.value, state.value)
        self._state = state
        self._notify(state)

    def _busy_failure(self) -> OperationFailure:
        logger.debug("Upload request ignored — an upload is already running")
        return OperationFailure(error="An upload is already in progress", status=0)

    def _accept(self, items: Sequence[UploadItem]) -> List[UploadItem]:
        accepted = []
        for item in items:
            if item.size > MAX_UPLOAD_BYTES:
                logger.warning("Rejecting '%s' — %d bytes exceeds limit", item.name, item.size)
                self.banners.error(
                    f"{item.name} is too large ({format_byte_size(item.size)}); "
                    f"the limit is {format_byte_size(MAX_UPLOAD_BYTES)}"
                )
                continue
            accepted.append(item)
        return accepted

    # ── Entry point ─────────────────────────────────────────────────────────

    async def choose(self, items: Sequence[UploadItem]) -> Optional[OperationResult]:
        """Handles one user pick. One file uploads at once, several become a pending batch.

        Returns the upload result for a single file, ``None`` when a batch was
        staged or nothing was acceptable.
        """
        if self._state is UploadState.UPLOADING:
            return self._busy_failure()

        accepted = self._accept(items)
        if not accepted:
            return None
        if len(accepted) == 1:
            if self._state is UploadState.BATCH_PENDING:
                self._batch = ()
            return await self.upload_one(accepted[0])

        self._batch = tuple(accepted)
        logger.debug("Batch staged with %d file(s)", len(self._batch))
        self._transition(UploadState.BATCH_PENDING)
        return None

    # ── Single ──────────────────────────────────────────────────────────────

    async def upload_one(self, item: UploadItem) -> OperationResult:
        if self._state is UploadState.UPLOADING:
            return self._busy_failure()

        self.dismiss_outcome()
        self._transition(UploadState.UPLOADING)
        try:
            result = await self.api.upload_file(item, self.description)
        finally:
            self._transition(UploadState.IDLE)

        if not self.alive:
            return result
        if result.success:
            self.description = ""
            self.file_list.apply_created(result.data)
            self.banners.success("File uploaded successfully!")
            logger.info("Uploaded '%s' as id=%s", item.name, result.data.id)
        else:
            logger.warning("Upload of '%s' failed: %s", item.name, result.error)
            self.banners.error(result.error or "Upload failed")
        return result

    # ── Batch ───────────────────────────────────────────────────────────────

    def remove_from_batch(self, index: int):
        if self._state is not UploadState.BATCH_PENDING:
            return
        if not 0 <= index < len(self._batch):
            return
        self._batch = self._batch[:index] + self._batch[index + 1:]
        if not self._batch:
            self._transition(UploadState.IDLE)
        else:
            self._notify(self._state)

    def dismiss_outcome(self):
        """Forgets the per-file errors of the last batch."""
        if self.last_outcome is None:
            return
        self.last_outcome = None
        self._notify(self._state)

    def cancel_batch(self):
        if self._state is not UploadState.BATCH_PENDING:
            return
        self._batch = ()
        self._transition(UploadState.IDLE)

    async def submit_batch(self) -> OperationResult:
        if self._state is UploadState.UPLOADING:
            return self._busy_failure()
        if self._state is not UploadState.BATCH_PENDING or not self._batch:
            return OperationFailure(error="No files staged for upload", status=0)

        items = self._batch
        self.dismiss_outcome()
        self._transition(UploadState.UPLOADING)
        try:
            result = await self.api.bulk_upload_files(items, self.description)
        finally:
            self._batch = ()
            self._transition(UploadState.IDLE)

        if not self.alive:
            return result
        if not result.success:
            logger.warning("Bulk upload of %d file(s) failed: %s", len(items), result.error)
            self.banners.error(result.error or "Bulk upload failed")
            return result

        outcome: BulkOutcome = result.data
        self.last_outcome = outcome
        for record in outcome.records:
            self.file_list.apply_created(record)

        logger.info(
            "Bulk upload finished — %d/%d succeeded, %d failed",
            outcome.succeeded, outcome.requested, outcome.failed,
        )
        if outcome.is_total_failure:
            self.banners.error(f"All {outcome.requested} uploads failed")
        elif outcome.is_partial:
            self.banners.warning(
                f"Uploaded {outcome.succeeded} of {outcome.requested} files; {outcome.failed} failed"
            )
        else:
            self.description = ""
            self.banners.success(result.message or f"{outcome.succeeded} files uploaded successfully!")
        return result
