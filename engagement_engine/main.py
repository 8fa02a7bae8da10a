import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from engagement_engine.api import analytics, cron, recommendations
from engagement_engine.core.config import settings
from engagement_engine.scheduler import build_scheduler, start_scheduler
from engagement_engine.services.analytics_service import AnalyticsService
from engagement_engine.services.recommendation_service import RecommendationService
from engagement_engine.storage import StorageGateway, build_gateway

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(gateway: Optional[StorageGateway] = None, enable_scheduler: Optional[bool] = None) -> FastAPI:
    app = FastAPI(title="Channel Engagement Engine")

    # -------------------------
    # CORS
    # -------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------
    # Include Routers
    # -------------------------
    app.include_router(analytics.router)
    app.include_router(recommendations.router)
    app.include_router(cron.router)

    # -------------------------
    # Wiring
    # -------------------------
    def wire(gw: StorageGateway):
        app.state.gateway = gw
        app.state.recommendation_service = RecommendationService(gw)
        app.state.analytics_service = AnalyticsService(gw)

    app.state.scheduler = None
    if gateway is not None:
        wire(gateway)

    scheduler_on = settings.SCHEDULER_ENABLED if enable_scheduler is None else enable_scheduler

    # -------------------------
    # FastAPI lifecycle
    # -------------------------
    @app.on_event("startup")
    def startup():
        if getattr(app.state, "gateway", None) is None:
            wire(build_gateway(settings))

        if scheduler_on:
            app.state.scheduler = build_scheduler(app.state.recommendation_service)
            start_scheduler(app.state.scheduler)

    @app.on_event("shutdown")
    def shutdown():
        if app.state.scheduler is not None and app.state.scheduler.running:
            app.state.scheduler.shutdown()

    # -------------------------
    # Routes
    # -------------------------
    @app.get("/")
    def root():
        return {"status": "running"}

    return app


app = create_app()
