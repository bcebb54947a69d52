import logging
from collections.abc import Sequence
from dataclasses import dataclass

from spamsift.model import classifier, features
from spamsift.model.classifier import NaiveBayesModel
from spamsift.model.data import Dataset, label_distribution
from spamsift.model.features import Vocabulary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainedModel:
    """
    A fitted vocabulary and classifier, always kept and persisted together.

    Instances are only created by `fit_model` (or loaded from the model
    store) and are read-only afterwards.
    """

    vocabulary: Vocabulary
    classifier: NaiveBayesModel

    @property
    def labels(self) -> tuple[str, ...]:
        return classifier.check_fitted(self.classifier).labels

    @property
    def positive_label(self) -> str:
        """The first declared label, "spam" under the default schema."""
        return self.labels[0]

    def check_fitted(self) -> None:
        """Raise StateError unless both the vocabulary and the classifier are fit."""
        features.check_fitted(self.vocabulary)
        classifier.check_fitted(self.classifier)

    def predict(self, text: str) -> str:
        """Classify a single message."""
        return classifier.predict(self.classifier, features.transform(self.vocabulary, text))

    def predict_many(self, texts: Sequence[str]) -> list[str]:
        """Classify a batch of messages."""
        self.check_fitted()
        if not texts:
            return []
        return classifier.predict_many(
            self.classifier, features.transform_texts(self.vocabulary, texts)
        )

    def score_many(self, texts: Sequence[str]) -> list[tuple[str, float]]:
        """(label, P(positive_label | text)) for each message, vectorized once."""
        self.check_fitted()
        if not texts:
            return []
        return classifier.predict_with_scores(
            self.classifier, features.transform_texts(self.vocabulary, texts)
        )

    def predict_proba(self, text: str) -> dict[str, float]:
        """Posterior probability of each label for a single message."""
        return classifier.predict_proba(
            self.classifier, features.transform(self.vocabulary, text)
        )

    def spam_score(self, text: str) -> float:
        """P(positive_label | text)."""
        return self.predict_proba(text)[self.positive_label]


def fit_model(dataset: Dataset, alpha: float = 1.0) -> TrainedModel:
    """
    Fit the bag-of-words vocabulary and the Naive Bayes classifier.

    Steps:
      1. Build the vocabulary from the training texts and count tokens.
      2. Estimate smoothed class priors and token likelihoods.

    Parameters
    ----------
    dataset : Dataset
        Training documents. Its declared label set becomes the model's.
    alpha : float
        Additive smoothing for priors and token likelihoods.

    Returns
    -------
    TrainedModel
        The immutable fitted model.
    """
    logger.info(
        "fitting model",
        extra={
            "n_documents": len(dataset),
            "label_counts": label_distribution(dataset),
        },
    )

    vocabulary, feature_matrix = features.fit_transform(dataset)
    nb_model = classifier.fit(feature_matrix, dataset.targets, dataset.labels, alpha)

    logger.info("model fit", extra={"vocabulary_size": len(vocabulary)})

    return TrainedModel(vocabulary=vocabulary, classifier=nb_model)
