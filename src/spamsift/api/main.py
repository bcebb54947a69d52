import logging
import sys
from contextlib import asynccontextmanager
from typing import Final

from fastapi import FastAPI

from spamsift import config
from spamsift.api import metrics, model, routes, static_config
from spamsift.api.middleware import RequestContextMiddleware
from spamsift.logs import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for the SpamSift API.

    Loads settings, configures logging, prepares the metrics manager and
    loads ("warms up") the model before any request is served. Every
    dependency honours `app.dependency_overrides`, so tests can inject
    settings, metrics and a fake model loader.
    """
    settings: config.Settings = app.dependency_overrides.get(
        config.get_settings, config.get_settings
    )()
    app.state.settings = settings

    configure_logging(
        json_logs=settings.LOG_JSON, level=settings.LOG_LEVEL, stream=sys.stdout
    )
    logger.info("Loaded settings")

    metrics_manager: metrics.MetricsManager = app.dependency_overrides.get(
        metrics.get_metrics_manager, metrics.get_metrics_manager
    )()
    app.state.metrics_manager = metrics_manager
    logger.info("Loaded metrics manager")

    model_loader: model.ModelLoader = app.dependency_overrides.get(
        model.get_model_loader, model.get_model_loader
    )()
    spam_model = model_loader(settings.MODEL_PATH)
    app.state.model_holder = model.ModelHolder(spam_model)

    logger.info(f"Loaded spam model {spam_model.version}")

    yield


app: Final[FastAPI] = FastAPI(
    lifespan=lifespan, title=static_config.API_TITLE, version=static_config.API_VERSION
)

app.add_middleware(RequestContextMiddleware)

app.include_router(routes.router)
