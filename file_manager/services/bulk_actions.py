import logging
from typing import List, Optional

from file_manager.api_client import FileApiClient
from file_manager.schemas.files import (
    BulkOutcome,
    FileRecord,
    OperationFailure,
    OperationResult,
    SelectionSummary,
)
from file_manager.services.banners import BannerBoard
from file_manager.services.base import Confirm, Saver, ask, save_to_working_dir
from file_manager.services.file_list import FileListOrchestrator
from file_manager.services.presentation import format_byte_size, total_size, unique_file_types
from file_manager.services.selection import SelectionTracker

logger = logging.getLogger("filemanager.services.bulk_actions")

PREVIEW_LIMIT = 10


class BulkActionOrchestrator:
    """Bulk delete / download over the current selection."""

    def __init__(
        self,
        api: FileApiClient,
        file_list: FileListOrchestrator,
        selection: SelectionTracker,
        banners: BannerBoard,
    ):
        self.api = api
        self.file_list = file_list
        self.selection = selection
        self.banners = banners
        self.busy = False

    def selected_files(self) -> List[FileRecord]:
        return self.selection.selected(self.file_list.files)

    # ── Selection helpers ───────────────────────────────────────────────────

    @property
    def all_selected(self) -> bool:
        files = self.file_list.files
        if not files or len(self.selection) != len(files):
            return False
        return all(f.id in self.selection for f in files)

    def select_all(self):
        self.selection.replace(f.id for f in self.file_list.files)

    def deselect_all(self):
        self.selection.clear()

    def toggle_all(self):
        if self.all_selected:
            self.deselect_all()
        else:
            self.select_all()

    def summary(self) -> SelectionSummary:
        selected = self.selected_files()
        return SelectionSummary(
            selected_count=len(selected),
            total_count=len(self.file_list.files),
            total_size=format_byte_size(total_size(selected)),
            file_types=unique_file_types(selected),
            preview=selected[:PREVIEW_LIMIT],
            remaining=max(len(selected) - PREVIEW_LIMIT, 0),
        )

    def _refuse(self) -> Optional[OperationFailure]:
        if not len(self.selection):
            return OperationFailure(error="No files selected", status=0)
        if self.busy:
            logger.debug("Bulk action refused — another bulk request is outstanding")
            return OperationFailure(error="A bulk operation is already in progress", status=0)
        return None

    # ── Bulk delete ─────────────────────────────────────────────────────────

    def delete_prompt(self) -> str:
        return (
            f"Are you sure you want to delete {len(self.selection)} selected files? "
            "This action cannot be undone."
        )

    async def bulk_delete(self, confirm: Optional[Confirm]) -> Optional[OperationResult]:
        """Deletes the selection after confirmation. Returns ``None`` when declined."""
        refused = self._refuse()
        if refused:
            return refused
        if not await ask(confirm, self.delete_prompt()):
            logger.debug("Bulk delete declined")
            return None

        file_ids = [f.id for f in self.selected_files()]
        logger.debug("bulk_delete — %d file(s)", len(file_ids))
        self.busy = True
        try:
            result = await self.api.bulk_delete_files(file_ids)
        finally:
            self.busy = False

        if not self.file_list.alive:
            return result
        if not result.success:
            logger.warning("Bulk delete failed: %s", result.error)
            self.banners.error(result.error or "Delete failed")
            return result

        outcome: BulkOutcome = result.data
        self.file_list.apply_bulk_deleted(outcome.deleted_ids)
        self.selection.replace(self.selection.ids - set(outcome.deleted_ids))
        message = result.message or f"{outcome.succeeded} files deleted"
        if outcome.failed:
            self.banners.warning(f"{message} ({outcome.failed} could not be deleted)")
        else:
            self.banners.success(message)
        logger.info("Bulk delete — %d deleted, %d failed", outcome.succeeded, outcome.failed)
        return result

    # ── Bulk download ───────────────────────────────────────────────────────

    async def bulk_download(
        self, zip_filename: Optional[str] = None, saver: Optional[Saver] = None
    ) -> OperationResult:
        refused = self._refuse()
        if refused:
            return refused

        file_ids = [f.id for f in self.selected_files()]
        self.busy = True
        try:
            result = await self.api.bulk_download_files(file_ids, zip_filename)
        finally:
            self.busy = False

        if not self.file_list.alive:
            return result
        if result.success:
            (saver or save_to_working_dir)(result.data)
            self.banners.success(f"{len(file_ids)} files downloaded as ZIP")
            logger.info("Bulk download of %d file(s) saved as '%s'", len(file_ids), result.data.filename)
        else:
            self.banners.error(result.error or "Download failed")
        return result
