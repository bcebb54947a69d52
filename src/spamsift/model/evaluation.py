import logging
from dataclasses import dataclass
from typing import Any

from sklearn.metrics import accuracy_score, confusion_matrix, precision_recall_fscore_support

from spamsift.errors import FormatError, StateError
from spamsift.model.data import Dataset
from spamsift.model.training import TrainedModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationSummary:
    """
    Result of running a trained model over labelled held-out data.

    Attributes
    ----------
    n_samples : int
        Number of evaluated documents.
    n_correct : int
        Number of documents whose predicted label matched the ground truth.
    accuracy : float
        n_correct / n_samples (0.0 when nothing was evaluated).
    labels : tuple[str, ...]
        Label order used by `confusion`, `precision` and `recall`.
    confusion : dict[str, dict[str, int]]
        confusion[true_label][predicted_label] -> count.
    precision : dict[str, float]
        Per-label precision (0.0 when a label was never predicted).
    recall : dict[str, float]
        Per-label recall (0.0 when a label never occurs in the data).
    """

    n_samples: int
    n_correct: int
    accuracy: float
    labels: tuple[str, ...]
    confusion: dict[str, dict[str, int]]
    precision: dict[str, float]
    recall: dict[str, float]

    @property
    def n_incorrect(self) -> int:
        return self.n_samples - self.n_correct

    def to_dict(self) -> dict[str, Any]:
        return {
            "n_samples": self.n_samples,
            "n_correct": self.n_correct,
            "n_incorrect": self.n_incorrect,
            "accuracy": self.accuracy,
            "labels": list(self.labels),
            "confusion": self.confusion,
            "precision": self.precision,
            "recall": self.recall,
        }

    def to_summary_string(self) -> str:
        """Render a short plain-text report, one statistic per line."""
        lines = [
            f"Correctly Classified Instances    {self.n_correct:>6}",
            f"Incorrectly Classified Instances  {self.n_incorrect:>6}",
            f"Accuracy                          {self.accuracy:>9.4f}",
            f"Total Number of Instances         {self.n_samples:>6}",
            "",
            "=== Confusion Matrix (rows: actual, columns: predicted) ===",
            "".join(f"{label:>8}" for label in ("", *self.labels)),
        ]
        for actual in self.labels:
            row = self.confusion[actual]
            lines.append(
                f"{actual:>8}" + "".join(f"{row[predicted]:>8}" for predicted in self.labels)
            )
        lines.append("")
        for label in self.labels:
            lines.append(
                f"{label}: precision={self.precision[label]:.4f} "
                f"recall={self.recall[label]:.4f}"
            )
        return "\n".join(lines)


def evaluate(model: TrainedModel | None, dataset: Dataset) -> EvaluationSummary:
    """
    Predict every test document and compare against its label.

    The model is only read. Documents are vectorized with the model's own
    vocabulary, so tokens unseen during training are ignored.

    Raises
    ------
    StateError
        If the model, or either of its parts, has not been fit.
    FormatError
        If the dataset declares labels the model does not know.
    """
    if model is None:
        raise StateError("Model must be fit before evaluate.")
    model.check_fitted()

    labels = model.labels
    unknown = [label for label in dataset.labels if label not in labels]
    if unknown:
        raise FormatError(
            f"Dataset labels {unknown} are not in the model's label set {list(labels)}."
        )

    y_true = dataset.targets
    y_pred = model.predict_many(dataset.texts)

    if not y_true:
        logger.warning("evaluated an empty dataset")
        return EvaluationSummary(
            n_samples=0,
            n_correct=0,
            accuracy=0.0,
            labels=labels,
            confusion={a: {p: 0 for p in labels} for a in labels},
            precision={label: 0.0 for label in labels},
            recall={label: 0.0 for label in labels},
        )

    # cm[row=true_label, col=predicted_label], both in declared label order.
    cm = confusion_matrix(y_true, y_pred, labels=list(labels))
    precision, recall, _, _ = precision_recall_fscore_support(
        y_true, y_pred, labels=list(labels), zero_division=0
    )

    summary = EvaluationSummary(
        n_samples=len(y_true),
        n_correct=int(cm.trace()),
        accuracy=float(accuracy_score(y_true, y_pred)),
        labels=labels,
        confusion={
            actual: {predicted: int(cm[i, j]) for j, predicted in enumerate(labels)}
            for i, actual in enumerate(labels)
        },
        precision={label: float(p) for label, p in zip(labels, precision)},
        recall={label: float(r) for label, r in zip(labels, recall)},
    )

    logger.info(
        "evaluation complete",
        extra={"n_samples": summary.n_samples, "accuracy": summary.accuracy},
    )
    return summary
