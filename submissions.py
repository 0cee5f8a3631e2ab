import logging
import time
from typing import Optional

from fastapi import BackgroundTasks

from database import CitationStore
from discord_bot import ReportNotifier
from records import ArrestRecord, CitationRecord

logger = logging.getLogger(__name__)


class SubmissionService:
    """Stores accepted records and queues their Discord notification.

    Notifications run as background tasks after the response is sent.
    """

    def __init__(self, store: CitationStore, notifier: Optional[ReportNotifier] = None):
        self.store = store
        self.notifier = notifier

    async def submit_citation(self, record: CitationRecord, background_tasks: BackgroundTasks) -> dict:
        citation = await self.store.create_citation(record)
        logger.info("Citation %s created (%s, total %s)", citation["id"], ", ".join(record.penal_codes), record.total_amount)
        if self.notifier is not None:
            background_tasks.add_task(self.notifier.deliver_citation, record)
        else:
            logger.warning("Discord service not configured, skipping citation notification")
        return citation

    async def submit_arrest(self, record: ArrestRecord, background_tasks: BackgroundTasks) -> dict:
        summary = record.summary()
        # arrests are not stored, the id only tags log lines and the response
        arrest_id = int(time.time() * 1000)
        logger.info(
            "Arrest report %s accepted (%s, warrant needed: %s)",
            arrest_id, ", ".join(record.penal_codes), summary.warrant_needed,
        )
        if self.notifier is not None:
            background_tasks.add_task(self.notifier.deliver_arrest, record)
        else:
            logger.warning("Discord service not configured, skipping arrest notification")
        return {"id": arrest_id, **summary.model_dump(by_alias=True)}
