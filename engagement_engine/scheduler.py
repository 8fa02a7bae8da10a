import logging
from apscheduler.schedulers.background import BackgroundScheduler

from engagement_engine.core.config import settings
from engagement_engine.services.recommendation_service import RecommendationService
from engagement_engine.workers.recommendation_batch import run_batch

logger = logging.getLogger(__name__)


# ---------------------------------------------------------
# WRAPPER: Recommendation Batch
# ---------------------------------------------------------
def run_recommendation_batch(service: RecommendationService):
    """
    Scheduler entry point. Never lets an exception reach APScheduler;
    a failed run is logged and the next interval tries again.
    """
    try:
        logger.info("🔄 Scheduler: Starting recommendation batch...")
        result = run_batch(service)
        logger.info(
            f"✅ Scheduler: {result.channels_processed} channels, "
            f"{result.recommendations_generated} recommendations."
        )
        return result
    except Exception as e:
        logger.error(f"❌ Scheduler Error (Recommendations): {str(e)}")
        return None


# ---------------------------------------------------------
# SCHEDULER SETUP
# ---------------------------------------------------------
def build_scheduler(service: RecommendationService, interval_hours: int = None) -> BackgroundScheduler:
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        run_recommendation_batch,
        "interval",
        hours=interval_hours or settings.RECOMMENDATION_INTERVAL_HOURS,
        id="recommendation_batch",
        args=[service],
        max_instances=1,
        coalesce=True,
    )
    return scheduler


def start_scheduler(scheduler: BackgroundScheduler):
    if scheduler.running:
        return
    scheduler.start()
    logger.info("🚀 Background Scheduler Started.")
