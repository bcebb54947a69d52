import functools
import threading
from collections.abc import Callable
from pathlib import Path
from typing import TypeAlias

from fastapi import Request

from spamsift.model import store
from spamsift.model.training import TrainedModel


class SpamModel:
    """
    Wrapper around a trained model and the version of the file it came from.

    Exposes batch predictions in the shape the API returns.
    """

    def __init__(self, model: TrainedModel, version: str):
        self._model: TrainedModel = model
        self._version: str = version

    @property
    def version(self) -> str:
        """Format tag and content hash, e.g. "spamsift-mnb/1+ab12cd34..."."""
        return self._version

    def predict(self, texts: list[str]) -> list[tuple[str, float]]:
        """
        Predict labels and spam probabilities for input texts.

        Returns
        -------
        list[tuple[str, float]]
            A list of (label, probability) pairs where:
              - label is the most likely class ("spam" or "ham")
              - probability is the model's P(spam | text) in [0, 1]
        """
        return self._model.score_many(texts)


class ModelHolder:
    """
    Holds the active model for concurrent requests.

    Models are immutable, so readers only need a consistent reference.
    The lock serializes swaps and the reads of the current reference.
    """

    def __init__(self, model: SpamModel):
        self._lock = threading.Lock()
        self._model = model

    @property
    def current(self) -> SpamModel:
        with self._lock:
            return self._model

    def replace(self, model: SpamModel) -> SpamModel:
        """Install a new model and return the previous one."""
        with self._lock:
            previous, self._model = self._model, model
        return previous


# Expose a callable signature representing "load a model from a path".
ModelLoader: TypeAlias = Callable[[Path], SpamModel]


def load_model(model_path: Path) -> SpamModel:
    """
    Load and validate a persisted model for serving.

    Raises
    ------
    NotFoundError
        There is no model file at `model_path`.
    CorruptModelError
        The model file failed its consistency checks.
    """
    model = store.load_model(model_path)
    return SpamModel(model, store.model_fingerprint(model_path))


@functools.cache
def get_model_loader() -> ModelLoader:
    """
    Dependency provider that returns a callable which loads a model by path.

    Tests override this through `app.dependency_overrides` to serve a fake
    model instead of reading from disk.
    """

    def impl(model_path: Path) -> SpamModel:
        return load_model(model_path)

    return impl


def get_model_holder(request: Request) -> ModelHolder:
    """FastAPI dependency returning the holder created during startup."""
    return request.app.state.model_holder


def get_model(request: Request) -> SpamModel:
    """FastAPI dependency returning the currently active model."""
    return get_model_holder(request).current
