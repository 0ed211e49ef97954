import logging

from apscheduler.schedulers.background import BackgroundScheduler

from config import RECONCILE_CRON_HOUR, RECONCILE_CRON_MINUTE, RECONCILE_SCHEDULER_ENABLED
from reconciler import run_reconcile_job

logger = logging.getLogger(__name__)

RECONCILE_JOB_ID = "reconcile_stale_reservations"


def build_scheduler() -> BackgroundScheduler:
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        run_reconcile_job,
        "cron",
        hour=RECONCILE_CRON_HOUR,
        minute=RECONCILE_CRON_MINUTE,
        id=RECONCILE_JOB_ID,
        # Runs missed while the process was down are collapsed into one
        coalesce=True,
        max_instances=1,
        replace_existing=True,
    )
    return scheduler


def start_scheduler():
    if not RECONCILE_SCHEDULER_ENABLED:
        logger.info("Reconcile scheduler disabled")
        return None
    scheduler = build_scheduler()
    scheduler.start()
    logger.info(
        "Reconcile job scheduled daily at %02d:%02d", RECONCILE_CRON_HOUR, RECONCILE_CRON_MINUTE
    )
    return scheduler
