import sys
import os
import logging

# Ensure project root is in path
sys.path.append(os.getcwd())

from engagement_engine.core.config import settings
from engagement_engine.core.errors import StorageError
from engagement_engine.services.recommendation_service import RecommendationService
from engagement_engine.storage import build_gateway
from engagement_engine.workers.recommendation_batch import run_batch

logging.basicConfig(level=settings.LOG_LEVEL)


def main() -> int:
    print("🚀 Generating recommendations for all active channels...")
    service = RecommendationService(build_gateway(settings))

    try:
        result = run_batch(service)
    except StorageError as e:
        print(f"❌ Storage unreachable: {e}")
        return 1

    print(
        f"🎉 Done: {result.channels_processed} processed, {result.channels_failed} failed, "
        f"{result.recommendations_generated} recommendations in {result.duration_ms}ms"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
