"""Sequential submission queue for batches of URLs.

One submitter never runs two acquisitions at once: ``run`` drains the queue
strictly in order, awaiting each acquisition before starting the next. URLs
already in the queue are ignored on resubmission.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from clipvault.core.errors import AcquisitionError
from clipvault.modules.acquisition.types import AcquisitionResult

logger = logging.getLogger(__name__)

class ItemStatus(str, enum.Enum):
    PENDING = "pending"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    ERROR = "error"

@dataclass
class QueueItem:
    url: str
    status: ItemStatus = ItemStatus.PENDING
    result: AcquisitionResult | None = None
    error: str | None = None

AcquireFn = Callable[[str], Awaitable[AcquisitionResult]]

class AcquisitionQueue:
    def __init__(self, acquire: AcquireFn):
        self._acquire = acquire
        self._items: list[QueueItem] = []
        self._running = False

    @property
    def items(self) -> list[QueueItem]:
        return list(self._items)

    def submit(self, urls: list[str]) -> list[QueueItem]:
        """Enqueue new URLs; returns only the items that were actually added."""
        known = {item.url for item in self._items}
        added = []
        for raw in urls:
            url = raw.strip()
            if not url or url in known:
                continue
            known.add(url)
            item = QueueItem(url=url)
            self._items.append(item)
            added.append(item)
        return added

    def pending(self) -> list[QueueItem]:
        return [item for item in self._items if item.status == ItemStatus.PENDING]

    def clear_finished(self):
        self._items = [i for i in self._items if i.status not in (ItemStatus.COMPLETED, ItemStatus.ERROR)]

    async def run(self) -> list[QueueItem]:
        if self._running:
            # already draining; the active run picks up newly submitted items
            return self.items
        self._running = True
        try:
            while (batch := self.pending()):
                item = batch[0]
                item.status = ItemStatus.DOWNLOADING
                try:
                    item.result = await self._acquire(item.url)
                    item.status = ItemStatus.COMPLETED
                except AcquisitionError as e:
                    item.status = ItemStatus.ERROR
                    item.error = e.message
                    logger.warning(f"Queued download failed for {item.url}: {e.message}")
                except Exception as e:
                    item.status = ItemStatus.ERROR
                    item.error = str(e) or type(e).__name__
                    logger.error(f"Queued download crashed for {item.url}: {e!r}", exc_info=True)
        finally:
            self._running = False
        return self.items
