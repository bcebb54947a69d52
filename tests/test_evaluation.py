from pathlib import Path

import pytest
from sklearn.naive_bayes import MultinomialNB

from spamsift.errors import FormatError, StateError
from spamsift.model import features, plots
from spamsift.model.classifier import NaiveBayesModel
from spamsift.model.data import Dataset, Document
from spamsift.model.evaluation import evaluate
from spamsift.model.training import TrainedModel


def test_perfect_predictions_give_accuracy_one(
    trained_model: TrainedModel, test_dataset: Dataset
):
    summary = evaluate(trained_model, test_dataset)

    assert summary.accuracy == 1.0
    assert summary.n_samples == 2
    assert summary.n_correct == 2
    assert summary.n_incorrect == 0
    assert summary.confusion == {
        "spam": {"spam": 1, "ham": 0},
        "ham": {"spam": 0, "ham": 1},
    }
    assert summary.precision == {"spam": 1.0, "ham": 1.0}
    assert summary.recall == {"spam": 1.0, "ham": 1.0}


def test_mistakes_show_up_in_confusion_counts(trained_model: TrainedModel):
    dataset = Dataset(
        documents=(
            Document("spam", "claim your free cash prize"),
            Document("ham", "win free cash now"),  # looks like spam
            Document("ham", "see you at the office"),
            Document("spam", "are you coming to lunch"),  # looks like ham
        )
    )

    summary = evaluate(trained_model, dataset)

    assert summary.accuracy == pytest.approx(0.5)
    assert summary.confusion == {
        "spam": {"spam": 1, "ham": 1},
        "ham": {"spam": 1, "ham": 1},
    }
    assert summary.precision["spam"] == pytest.approx(0.5)
    assert summary.recall["ham"] == pytest.approx(0.5)


def test_evaluate_does_not_mutate_model(
    trained_model: TrainedModel, test_dataset: Dataset
):
    vocabulary_before = trained_model.vocabulary.index
    priors_before = trained_model.classifier.estimator.class_log_prior_.copy()

    evaluate(trained_model, test_dataset)

    assert trained_model.vocabulary.index == vocabulary_before
    assert (trained_model.classifier.estimator.class_log_prior_ == priors_before).all()


def test_evaluate_empty_dataset(trained_model: TrainedModel):
    summary = evaluate(trained_model, Dataset(documents=()))

    assert summary.n_samples == 0
    assert summary.accuracy == 0.0
    assert summary.confusion["spam"]["ham"] == 0


def test_evaluate_unfit_model_raises_state_error(test_dataset: Dataset):
    with pytest.raises(StateError):
        evaluate(None, test_dataset)


@pytest.mark.parametrize("empty", [True, False])
def test_evaluate_checks_fit_state_before_anything_else(
    empty: bool, test_dataset: Dataset
):
    dataset = Dataset(documents=()) if empty else test_dataset
    unfit = TrainedModel(
        vocabulary=features.Vocabulary(features.build_vectorizer()),
        classifier=NaiveBayesModel(estimator=MultinomialNB()),
    )

    with pytest.raises(StateError):
        evaluate(unfit, dataset)

    with pytest.raises(StateError):
        evaluate(TrainedModel(None, None), dataset)  # type: ignore[arg-type]


def test_evaluate_rejects_labels_unknown_to_model(trained_model: TrainedModel):
    mixed = Dataset(
        documents=(
            Document("eggs", "free cash"),
            Document("ham", "see you at the office"),
        ),
        labels=("eggs", "spam", "ham"),
    )
    only_foreign = Dataset(
        documents=(Document("eggs", "free cash"),), labels=("eggs", "spam", "ham")
    )

    for dataset in (mixed, only_foreign):
        with pytest.raises(FormatError):
            evaluate(trained_model, dataset)


def test_evaluate_accepts_a_subset_of_model_labels(trained_model: TrainedModel):
    dataset = Dataset(
        documents=(Document("ham", "see you at the office"),), labels=("ham",)
    )

    summary = evaluate(trained_model, dataset)

    assert summary.n_samples == 1
    assert sum(sum(row.values()) for row in summary.confusion.values()) == 1


def test_summary_string_and_dict(trained_model: TrainedModel, test_dataset: Dataset):
    summary = evaluate(trained_model, test_dataset)

    text = summary.to_summary_string()
    assert "Correctly Classified Instances" in text
    assert "Accuracy" in text
    assert "1.0000" in text

    as_dict = summary.to_dict()
    assert as_dict["n_correct"] == 2
    assert as_dict["labels"] == ["spam", "ham"]


def test_save_confusion_matrix_plot(
    tmp_path: Path, trained_model: TrainedModel, test_dataset: Dataset
):
    out_path = tmp_path / "reports" / "confusion_matrix.png"

    plots.save_confusion_matrix(evaluate(trained_model, test_dataset), out_path)

    assert out_path.exists()
    assert out_path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"
