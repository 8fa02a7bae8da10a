"""
engagement_engine/workers/recommendation_batch.py

Batch trigger: regenerate recommendations for every active channel.

A failure for one channel (including "not enough posts") is logged and
counted and the loop moves on. Only an unreachable gateway at the start
stops the run.
"""

import logging
import time

from engagement_engine.core.errors import EngineError, ValidationError
from engagement_engine.schemas.recommendation import BatchRunResult
from engagement_engine.services.recommendation_service import RecommendationService

logger = logging.getLogger(__name__)


def run_batch(service: RecommendationService) -> BatchRunResult:
    started = time.monotonic()

    # Raises StorageError; fatal for the whole run
    service.gateway.ping()
    channels = service.gateway.list_active_channels()

    logger.info(f"🔄 Recommendation batch: {len(channels)} active channels")

    processed = 0
    failed = 0
    generated = 0

    for channel in channels:
        try:
            candidates = service.generate(channel.id)
            processed += 1
            generated += len(candidates)
        except ValidationError as e:
            failed += 1
            logger.info(f"⏭️  Channel {channel.id} skipped: {e}")
        except EngineError as e:
            failed += 1
            logger.error(f"❌ Channel {channel.id} failed: {e}")
        except Exception:
            failed += 1
            logger.exception(f"❌ Channel {channel.id} failed with an unexpected error")

    result = BatchRunResult(
        channels_processed=processed,
        channels_failed=failed,
        recommendations_generated=generated,
        duration_ms=int((time.monotonic() - started) * 1000),
    )
    logger.info(
        f"✅ Recommendation batch done: {processed} processed, {failed} failed, "
        f"{generated} recommendations in {result.duration_ms}ms"
    )
    return result
