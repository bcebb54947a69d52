import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import joblib
from sklearn.exceptions import NotFittedError
from sklearn.feature_extraction.text import CountVectorizer
from sklearn.naive_bayes import MultinomialNB
from sklearn.utils.validation import check_is_fitted

from spamsift.common.signature import sha256_hash_file
from spamsift.errors import CorruptModelError, NotFoundError, StateError, StorageIOError
from spamsift.model.classifier import NaiveBayesModel
from spamsift.model.features import Vocabulary
from spamsift.model.training import TrainedModel
from spamsift.model.types import MODEL_FORMAT, ModelBundle

logger = logging.getLogger(__name__)


def save_model(model: TrainedModel | None, path: Path) -> None:
    """
    Persist a trained model (vocabulary + classifier) as a single file.

    The bundle is dumped to a temporary file next to `path` and moved into
    place with `os.replace`, so readers never observe a half-written model.

    Raises
    ------
    StateError
        If there is no model, or it has not been fit.
    StorageIOError
        If the file cannot be written.
    """
    if model is None:
        raise StateError("Model must be fit before it can be saved.")
    model.check_fitted()

    bundle: ModelBundle = {
        "format": MODEL_FORMAT,
        "labels": list(model.labels),
        "vectorizer": model.vocabulary.vectorizer,
        "classifier": model.classifier.estimator,
    }

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        os.close(fd)
        try:
            joblib.dump(bundle, tmp_name)
            os.replace(tmp_name, path)
        finally:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
    except OSError as exc:
        raise StorageIOError(f"Could not write model {path}: {exc}") from exc

    logger.info("saved model", extra={"path": str(path)})


def load_model(path: Path) -> TrainedModel:
    """
    Load and validate a model written by `save_model`.

    Raises
    ------
    NotFoundError
        If there is no file at `path` (callers usually retrain).
    CorruptModelError
        If the file cannot be deserialized or its contents are inconsistent.
    StorageIOError
        If the file exists but cannot be read.
    """
    if not path.exists():
        raise NotFoundError(f"No model at {path}")

    try:
        with path.open("rb") as f:
            bundle = joblib.load(f)
    except OSError as exc:
        raise StorageIOError(f"Could not read model {path}: {exc}") from exc
    except Exception as exc:
        # Unpickling garbage can raise almost anything.
        raise CorruptModelError(f"Could not deserialize model {path}: {exc}") from exc

    model = _model_from_bundle(bundle)

    logger.info(
        "loaded model",
        extra={"path": str(path), "vocabulary_size": len(model.vocabulary)},
    )
    return model


def _model_from_bundle(bundle: Any) -> TrainedModel:
    """Rebuild a TrainedModel, checking every invariant of the persisted form."""
    if not isinstance(bundle, dict) or bundle.get("format") != MODEL_FORMAT:
        raise CorruptModelError(f"Model file is not in {MODEL_FORMAT!r} format.")

    labels = bundle.get("labels")
    vectorizer = bundle.get("vectorizer")
    estimator = bundle.get("classifier")

    if not isinstance(labels, list) or not labels:
        raise CorruptModelError("Model file has no label set.")
    if not isinstance(vectorizer, CountVectorizer):
        raise CorruptModelError("Model vectorizer is not a CountVectorizer.")
    if not isinstance(estimator, MultinomialNB):
        raise CorruptModelError("Model classifier is not a MultinomialNB.")

    try:
        check_is_fitted(vectorizer, "vocabulary_")
        check_is_fitted(estimator, ["feature_log_prob_", "class_log_prior_"])
    except NotFittedError as exc:
        raise CorruptModelError(f"Model components are not fitted: {exc}") from exc

    if sorted(estimator.classes_.tolist()) != sorted(labels):
        raise CorruptModelError(
            f"Classifier classes {estimator.classes_.tolist()} do not match labels {labels}."
        )

    n_labels, n_features = estimator.feature_log_prob_.shape
    if n_labels != len(labels) or estimator.class_log_prior_.shape != (n_labels,):
        raise CorruptModelError("Classifier parameter tables do not match the label set.")
    if n_features != len(vectorizer.vocabulary_):
        raise CorruptModelError(
            f"Vocabulary size {len(vectorizer.vocabulary_)} does not match "
            f"classifier width {n_features}."
        )

    return TrainedModel(
        vocabulary=Vocabulary(vectorizer),
        classifier=NaiveBayesModel(estimator=estimator, labels=tuple(labels)),
    )


def model_fingerprint(path: Path) -> str:
    """
    Return a stable runtime version identifier for a persisted model.

    The identifier concatenates the format tag with a content hash,
    e.g. "spamsift-mnb/1+ab12cd34...".
    """
    try:
        return f"{MODEL_FORMAT}+{sha256_hash_file(path)}"
    except FileNotFoundError as exc:
        raise NotFoundError(f"No model at {path}") from exc
    except OSError as exc:
        raise StorageIOError(f"Could not read model {path}: {exc}") from exc
