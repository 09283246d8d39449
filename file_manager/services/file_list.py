import logging
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from file_manager.api_client import FileApiClient
from file_manager.schemas.files import (
    FilePatch,
    FileRecord,
    OperationFailure,
    OperationResult,
)
from file_manager.services.banners import BannerBoard
from file_manager.services.base import Confirm, Orchestrator, Saver, ask, save_to_working_dir

logger = logging.getLogger("filemanager.services.file_list")

DELETING = "deleting"
UPDATING = "updating"
DOWNLOADING = "downloading"


class FileListOrchestrator(Orchestrator):
    """Authoritative, display-ordered list of files for one view.

    Listeners receive the new tuple of records after every change.
    """

    def __init__(self, api: FileApiClient, banners: BannerBoard):
        super().__init__()
        self.api = api
        self.banners = banners
        self._files: Tuple[FileRecord, ...] = ()
        self._busy: dict = {}
        self.loading = False

    @property
    def files(self) -> Tuple[FileRecord, ...]:
        return self._files

    @property
    def busy(self) -> Mapping[str, str]:
        return MappingProxyType(self._busy)

    def get(self, file_id: str) -> Optional[FileRecord]:
        return next((f for f in self._files if f.id == file_id), None)

    def _replace(self, files: Tuple[FileRecord, ...]):
        self._files = files
        self._notify(files)

    # ── Listing ─────────────────────────────────────────────────────────────

    async def load_all(self) -> OperationResult:
        logger.debug("load_all — fetching full listing")
        self.banners.clear()
        self.loading = True
        try:
            result = await self.api.list_files()
        finally:
            self.loading = False

        if not self.alive:
            return result
        if result.success:
            self._replace(tuple(result.data))
            logger.info("Loaded %d file(s)", len(self._files))
        else:
            logger.warning("Listing failed (status=%d): %s — keeping %d stale file(s)",
                           result.status, result.error, len(self._files))
            self.banners.error(result.error or "Failed to load files")
        return result

    # ── Apply operations ────────────────────────────────────────────────────

    def apply_created(self, record: FileRecord):
        if self.get(record.id) is not None:
            self.apply_updated(record)
            return
        self._replace((record,) + self._files)

    def apply_updated(self, record: FileRecord):
        if self.get(record.id) is None:
            logger.debug("apply_updated for unknown id=%s ignored", record.id)
            return
        self._replace(tuple(record if f.id == record.id else f for f in self._files))

    def apply_deleted(self, file_id: str):
        self.apply_bulk_deleted([file_id])

    def apply_bulk_deleted(self, file_ids: Iterable[str]):
        doomed = set(file_ids)
        remaining = tuple(f for f in self._files if f.id not in doomed)
        if len(remaining) != len(self._files):
            self._replace(remaining)

    # ── Row actions ─────────────────────────────────────────────────────────

    def _guard(self, file_id: str) -> Optional[OperationFailure]:
        if self.get(file_id) is None:
            return OperationFailure(error="File not found", status=0)
        if file_id in self._busy:
            logger.debug("File id=%s busy (%s) — action refused", file_id, self._busy[file_id])
            return OperationFailure(error="Another operation is in progress for this file", status=0)
        return None

    def _mark(self, file_id: str, tag: str):
        self._busy = {**self._busy, file_id: tag}

    def _unmark(self, file_id: str):
        self._busy = {k: v for k, v in self._busy.items() if k != file_id}

    async def delete(self, file_id: str, confirm: Optional[Confirm]) -> Optional[OperationResult]:
        """Deletes one file after confirmation. Returns ``None`` when declined."""
        refused = self._guard(file_id)
        if refused:
            return refused
        record = self.get(file_id)
        if not await ask(confirm, f'Are you sure you want to delete "{record.original_name}"?'):
            logger.debug("Delete of id=%s declined", file_id)
            return None

        self._mark(file_id, DELETING)
        try:
            result = await self.api.delete_file(file_id)
        finally:
            self._unmark(file_id)

        if not self.alive:
            return result
        if result.success:
            self.apply_deleted(file_id)
            self.banners.success("File deleted successfully!")
            logger.info("Deleted '%s' (id=%s)", record.original_name, file_id)
        else:
            self.banners.error(result.error or "Delete failed")
        return result

    async def update(self, file_id: str, patch: FilePatch) -> OperationResult:
        refused = self._guard(file_id)
        if refused:
            return refused

        self._mark(file_id, UPDATING)
        try:
            result = await self.api.update_file(file_id, patch)
        finally:
            self._unmark(file_id)

        if not self.alive:
            return result
        if result.success:
            self.apply_updated(result.data)
            self.banners.success("File updated successfully!")
            logger.info("Updated metadata of id=%s", file_id)
        else:
            logger.warning("Update of id=%s failed: %s", file_id, result.error)
            self.banners.error(result.error or "Update failed")
        return result

    async def update_description(self, file_id: str, description: str) -> OperationResult:
        return await self.update(file_id, FilePatch(description=description))

    async def download(self, file_id: str, saver: Optional[Saver] = None) -> OperationResult:
        refused = self._guard(file_id)
        if refused:
            return refused
        record = self.get(file_id)

        self._mark(file_id, DOWNLOADING)
        try:
            result = await self.api.download_file(file_id, record.original_name)
        finally:
            self._unmark(file_id)

        if not self.alive:
            return result
        if result.success:
            (saver or save_to_working_dir)(result.data)
        else:
            self.banners.error(result.error or "Download failed")
        return result
