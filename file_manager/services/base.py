import inspect
import logging
from typing import Any, Awaitable, Callable, List, Optional, Union

from file_manager.schemas.files import DownloadedFile

logger = logging.getLogger("filemanager.services")

Listener = Callable[[Any], None]


class Orchestrator:
    """Listener bookkeeping shared by the state holders.

    After ``dispose()`` the owner treats late network results as stale: they
    are returned to the caller but no longer applied to state.
    """

    def __init__(self):
        self._listeners: List[Listener] = []
        self._alive = True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, value: Any):
        for listener in list(self._listeners):
            listener(value)

    @property
    def alive(self) -> bool:
        return self._alive

    def dispose(self):
        logger.debug("%s disposed", type(self).__name__)
        self._alive = False
        self._listeners = []


Confirm = Callable[[str], Union[bool, Awaitable[bool]]]
Saver = Callable[[DownloadedFile], Any]


async def ask(confirm: Optional[Confirm], prompt: str) -> bool:
    """Runs a confirmation guard; a missing guard means the user declined."""
    if confirm is None:
        return False
    answer = confirm(prompt)
    if inspect.isawaitable(answer):
        answer = await answer
    return bool(answer)


def save_to_working_dir(downloaded: DownloadedFile):
    path = downloaded.save(".")
    logger.info("Saved '%s' to %s", downloaded.filename, path)
    return path
