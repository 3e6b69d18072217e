import logging

from celery import shared_task

from .scoring import rerate_risks

logger = logging.getLogger(__name__)


@shared_task(name="risk.tasks.rerate_all_risks")
def rerate_all_risks() -> int:
    changed = rerate_risks()
    logger.info("Re-rated risks after range change: %s updated", changed)
    return changed
