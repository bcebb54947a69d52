from pydantic import BaseModel, Field


class PredictRequest(BaseModel):
    """
    Schema for `/predict` POST requests.

    Attributes
    ----------
    texts : list[str]
        A list of text messages to classify. The list may contain multiple
        samples for batch inference.
    """

    texts: list[str] = Field(examples=[["u have won the 1 lakh prize"]])


class Prediction(BaseModel):
    """
    Schema representing an individual prediction result.

    Attributes
    ----------
    label : str
        The predicted class label, either `'spam'` or `'ham'`.
    score : float
        The model's posterior probability that the text is spam,
        in the range [0.0, 1.0].
    """

    label: str
    score: float


class PredictResponse(BaseModel):
    """Schema for `/predict` responses, one prediction per input text."""

    predictions: list[Prediction]


class HealthResponse(BaseModel):
    """
    Schema for `/health` responses.

    Attributes
    ----------
    status : str
        Usually `'ok'` when operational.
    model_version : str
        Format tag and content hash of the currently loaded model.
    """

    status: str
    model_version: str
