import logging
from typing import Optional

from file_manager.api_client import FileApiClient, get_api_client
from file_manager.services.banners import BannerBoard
from file_manager.services.bulk_actions import BulkActionOrchestrator
from file_manager.services.file_list import FileListOrchestrator
from file_manager.services.selection import SelectionTracker
from file_manager.services.upload import UploadOrchestrator

logger = logging.getLogger("filemanager.services.workspace")


class Workspace:
    """All orchestrators backing one file-management view, wired together.

    Any change to the listing prunes selections of files that disappeared.
    """

    def __init__(self, api: Optional[FileApiClient] = None):
        self.api = api or get_api_client()
        self.banners = BannerBoard()
        self.files = FileListOrchestrator(self.api, self.banners)
        self.selection = SelectionTracker(lambda: self.files.files)
        self.uploads = UploadOrchestrator(self.api, self.files, self.banners)
        self.bulk = BulkActionOrchestrator(self.api, self.files, self.selection, self.banners)

        self._unsubscribe = self.files.subscribe(
            lambda files: self.selection.retain(f.id for f in files)
        )
        logger.debug("Workspace created for %s", self.api.base_url)

    async def refresh(self):
        """Reloads the listing; feedback from earlier actions does not carry over."""
        self.uploads.dismiss_outcome()
        return await self.files.load_all()

    def close(self):
        self._unsubscribe()
        for part in (self.files, self.selection, self.uploads):
            part.dispose()
        logger.debug("Workspace closed")
