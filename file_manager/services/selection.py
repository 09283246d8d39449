import logging
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence

from file_manager.schemas.files import FileRecord
from file_manager.services.base import Orchestrator

logger = logging.getLogger("filemanager.services.selection")


class SelectionTracker(Orchestrator):
    """Set of selected file ids, scoped to the listing returned by ``listing()``.

    The value is a frozenset replaced wholesale on every change; listeners
    receive the new frozenset.
    """

    def __init__(self, listing: Callable[[], Sequence[FileRecord]]):
        super().__init__()
        self._listing = listing
        self._ids: FrozenSet[str] = frozenset()

    @property
    def ids(self) -> FrozenSet[str]:
        return self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, file_id: str) -> bool:
        return file_id in self._ids

    def contains(self, file_id: str) -> bool:
        return file_id in self._ids

    def _live_ids(self) -> FrozenSet[str]:
        return frozenset(f.id for f in self._listing())

    def _set(self, ids: FrozenSet[str]):
        if ids == self._ids:
            return
        self._ids = ids
        logger.debug("Selection now %d file(s)", len(ids))
        self._notify(ids)

    def add(self, file_id: str):
        if file_id not in self._live_ids():
            logger.debug("Ignoring selection of unknown file id=%s", file_id)
            return
        self._set(self._ids | {file_id})

    def remove(self, file_id: str):
        self._set(self._ids - {file_id})

    def toggle(self, file_id: str):
        if file_id in self._ids:
            self.remove(file_id)
        else:
            self.add(file_id)

    def replace(self, ids: Iterable[str]):
        self._set(frozenset(ids) & self._live_ids())

    def clear(self):
        self._set(frozenset())

    def retain(self, live_ids: Iterable[str]):
        """Prune ids that are no longer part of the listing."""
        pruned = self._ids & frozenset(live_ids)
        if pruned != self._ids:
            logger.debug("Pruning %d stale selection(s)", len(self._ids - pruned))
        self._set(pruned)

    def selected(self, files: Optional[Sequence[FileRecord]] = None) -> List[FileRecord]:
        """Selected records in display order of the listing."""
        files = self._listing() if files is None else files
        return [f for f in files if f.id in self._ids]
