import logging
from typing import Annotated, Final

import prometheus_client
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from spamsift import config
from spamsift.api import metrics, model
from spamsift.api.schemas import (
    HealthResponse,
    PredictRequest,
    PredictResponse,
    Prediction,
)
from spamsift.errors import SpamSiftError

logger = logging.getLogger(__name__)

router: Final[APIRouter] = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health(
    spam_model: Annotated[model.SpamModel, Depends(model.get_model)],
):
    """Return a basic health status and the version of the loaded model."""
    return HealthResponse(status="ok", model_version=spam_model.version)


@router.get("/ready")
def ready(_: Annotated[model.SpamModel, Depends(model.get_model)]):
    """Readiness signal for orchestrators once the model is loaded."""
    return {"ready": True}


@router.get("/metrics")
def app_metrics(
    metrics: Annotated[metrics.MetricsManager, Depends(metrics.get_metrics_manager)],
):
    """Expose runtime metrics in Prometheus exposition format."""
    return Response(
        metrics.render(),
        media_type=prometheus_client.CONTENT_TYPE_LATEST,
    )


@router.post(
    "/predict",
    response_model=PredictResponse,
)
def predict(
    prediction_request: PredictRequest,
    metrics: Annotated[metrics.MetricsManager, Depends(metrics.get_metrics_manager)],
    spam_model: Annotated[model.SpamModel, Depends(model.get_model)],
    settings: Annotated[config.Settings, Depends(config.get_settings)],
):
    """
    Classify input text messages as spam or ham.

    Parameters
    ----------
    prediction_request : PredictRequest
        Pydantic model containing a list of input texts (`texts`).
    metrics : MetricsManager
        Records inference latency and predicted label counts.
    spam_model : SpamModel
        The active model, read once per request.
    settings : Settings
        Runtime configuration, including request size limits.

    Returns
    -------
    PredictResponse
        One prediction per input text with:
        - `label`: "spam" or "ham"
        - `score`: model's spam probability (float in [0, 1])

    Raises
    ------
    HTTPException
        - 413 if the request contains too many text items.
        - 413 if any single text exceeds the max allowed length.
    """
    if len(prediction_request.texts) > settings.MAX_TEXTS_PER_REQUEST:
        raise HTTPException(status_code=413, detail="Too many items")

    if any(len(t) > settings.MAX_TEXT_LEN for t in prediction_request.texts):
        raise HTTPException(status_code=413, detail="Item too large")

    with metrics.infer_time.time():
        preds = spam_model.predict(prediction_request.texts)

    for label, _ in preds:
        metrics.predictions.labels(label=label).inc()

    return PredictResponse(
        predictions=[Prediction(label=label, score=prob) for label, prob in preds]
    )


@router.post("/reload", response_model=HealthResponse)
def reload(
    request: Request,
    holder: Annotated[model.ModelHolder, Depends(model.get_model_holder)],
    model_loader: Annotated[model.ModelLoader, Depends(model.get_model_loader)],
    metrics: Annotated[metrics.MetricsManager, Depends(metrics.get_metrics_manager)],
    settings: Annotated[config.Settings, Depends(config.get_settings)],
):
    """
    Reload the model file and swap it in for subsequent requests.

    The previous model keeps serving if the new file is missing or
    corrupt; the failure is reported with a 503.
    """
    try:
        new_model = model_loader(settings.MODEL_PATH)
    except SpamSiftError as exc:
        metrics.reloads.labels(outcome=exc.kind.value).inc()
        logger.error(
            "model reload failed",
            extra={"kind": exc.kind.value, "request_id": request.state.request_id},
        )
        raise HTTPException(
            status_code=503, detail=f"Model unavailable: {exc.kind.value}"
        ) from exc

    previous = holder.replace(new_model)
    metrics.reloads.labels(outcome="ok").inc()
    logger.info(
        "model reloaded",
        extra={
            "request_id": request.state.request_id,
            "previous_version": previous.version,
            "model_version": new_model.version,
        },
    )
    return HealthResponse(status="ok", model_version=new_model.version)
