from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from scipy.sparse import csr_matrix
from scipy.special import logsumexp
from sklearn.exceptions import NotFittedError
from sklearn.naive_bayes import MultinomialNB
from sklearn.utils.validation import check_is_fitted

from spamsift.errors import FormatError, StateError
from spamsift.model.types import LABELS


@dataclass(frozen=True)
class NaiveBayesModel:
    """
    A fitted multinomial Naive Bayes estimator and its declared label order.

    scikit-learn keeps classes sorted alphabetically; `labels` is the
    declared order used for output columns and tie-breaking.
    """

    estimator: MultinomialNB
    labels: tuple[str, ...] = LABELS

    @property
    def n_features(self) -> int:
        return int(self.estimator.feature_log_prob_.shape[1])

    @property
    def column_order(self) -> list[int]:
        """Indices into `estimator.classes_` following the declared label order."""
        classes: list[str] = self.estimator.classes_.tolist()
        return [classes.index(label) for label in self.labels]


def smoothed_class_prior(
    targets: Sequence[str], classes: Sequence[str], alpha: float = 1.0
) -> np.ndarray:
    """
    Laplace-smoothed class priors: (count + alpha) / (n + alpha * k).

    Returned in the order of `classes`. A class with no training documents
    still gets a non-zero prior.
    """
    counts = np.array([sum(1 for t in targets if t == c) for c in classes], dtype=float)
    return (counts + alpha) / (len(targets) + alpha * len(classes))


def fit(
    features: csr_matrix,
    targets: Sequence[str],
    labels: tuple[str, ...] = LABELS,
    alpha: float = 1.0,
) -> NaiveBayesModel:
    """
    Estimate class priors and per-class token probabilities.

    Parameters
    ----------
    features : csr_matrix
        Token counts of shape (n_documents, n_features).
    targets : Sequence[str]
        One label per row of `features`.
    labels : tuple[str, ...]
        Declared label set, in declared order.
    alpha : float
        Additive smoothing applied to both priors and token likelihoods.

    Raises
    ------
    FormatError
        If a target is outside the declared label set or the number of
        targets does not match the number of rows.
    """
    targets = list(targets)

    if features.shape[0] != len(targets):
        raise FormatError(
            f"Got {features.shape[0]} feature rows but {len(targets)} labels."
        )

    unknown = sorted(set(targets) - set(labels))
    if unknown:
        raise FormatError(f"Labels {unknown} are not in {list(labels)}.")

    # scikit-learn orders classes alphabetically; priors must follow that order.
    classes = sorted(labels)
    estimator = MultinomialNB(
        alpha=alpha, class_prior=smoothed_class_prior(targets, classes, alpha)
    )

    # A single partial_fit call registers every declared class even when
    # one of them is absent from the training data.
    estimator.partial_fit(features, targets, classes=classes)

    return NaiveBayesModel(estimator=estimator, labels=tuple(labels))


def check_fitted(model: NaiveBayesModel | None) -> NaiveBayesModel:
    """Return `model`, raising StateError if it is missing or has not been fit."""
    if not isinstance(model, NaiveBayesModel):
        raise StateError("Classifier must be fit before predict.")

    try:
        check_is_fitted(model.estimator, "feature_log_prob_")
    except NotFittedError as exc:
        raise StateError("Classifier must be fit before predict.") from exc

    return model


def joint_log_likelihood(model: NaiveBayesModel | None, features: csr_matrix) -> np.ndarray:
    """
    log P(label) + sum(count(token) * log P(token | label)) for every row.

    Columns follow the declared label order. Rows with no known tokens
    reduce to the log priors.
    """
    model = check_fitted(model)
    jll = model.estimator.predict_joint_log_proba(features)
    return jll[:, model.column_order]


def predict_many(model: NaiveBayesModel | None, features: csr_matrix) -> list[str]:
    """Predict one label per row; ties resolve to the earliest declared label."""
    model = check_fitted(model)
    best = np.argmax(joint_log_likelihood(model, features), axis=1)
    return [model.labels[i] for i in best]


def predict(model: NaiveBayesModel | None, feature_vector: csr_matrix) -> str:
    """Predict the label of a single 1 x n_features row."""
    return predict_many(model, feature_vector)[0]


def predict_proba(model: NaiveBayesModel | None, feature_vector: csr_matrix) -> dict[str, float]:
    """Posterior probability of each declared label for a single row."""
    model = check_fitted(model)
    probabilities = model.estimator.predict_proba(feature_vector)[0, model.column_order]
    return {label: float(p) for label, p in zip(model.labels, probabilities)}


def predict_with_scores(
    model: NaiveBayesModel | None, features: csr_matrix
) -> list[tuple[str, float]]:
    """
    Predict every row and score it in one pass.

    Returns (label, posterior of the first declared label) per row. The
    label follows the same argmax and tie rule as `predict_many`.
    """
    jll = joint_log_likelihood(model, features)
    posteriors = np.exp(jll - logsumexp(jll, axis=1, keepdims=True))
    labels = check_fitted(model).labels
    return [
        (labels[best], float(row[0]))
        for best, row in zip(np.argmax(jll, axis=1), posteriors)
    ]
