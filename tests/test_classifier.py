import math

import numpy as np
import pytest
from sklearn.naive_bayes import MultinomialNB

from spamsift.errors import FormatError, StateError
from spamsift.model import classifier, features
from spamsift.model.classifier import NaiveBayesModel, smoothed_class_prior
from spamsift.model.data import Dataset, Document
from spamsift.model.training import TrainedModel, fit_model


def _dataset(*rows: tuple[str, str]) -> Dataset:
    return Dataset(documents=tuple(Document(label, text) for label, text in rows))


def test_you_won_is_spam():
    model = fit_model(
        _dataset(("spam", "you won the lottery"), ("ham", "see you at lunch"))
    )

    assert model.predict("you won") == "spam"


def test_prediction_is_deterministic(trained_model: TrainedModel):
    text = "call now to claim your free prize"

    results = {trained_model.predict(text) for _ in range(20)}

    assert results == {"spam"}


def test_tie_resolves_to_spam():
    """Equal priors and no known tokens give identical scores for both labels."""
    model = fit_model(_dataset(("spam", "alpha"), ("ham", "beta")))

    assert model.predict("gamma delta") == "spam"
    assert model.predict_proba("gamma delta") == pytest.approx({"spam": 0.5, "ham": 0.5})


def test_unknown_tokens_fall_back_to_priors():
    model = fit_model(
        _dataset(("spam", "prize"), ("ham", "lunch"), ("ham", "dinner"))
    )

    assert model.predict("completely unseen words") == "ham"

    vector = features.transform(model.vocabulary, "completely unseen words")
    jll = classifier.joint_log_likelihood(model.classifier, vector)

    # (1 + 1) / (3 + 2) for spam, (2 + 1) / (3 + 2) for ham
    assert jll[0] == pytest.approx([math.log(2 / 5), math.log(3 / 5)])


def test_joint_log_likelihood_matches_closed_form():
    model = fit_model(
        _dataset(("spam", "you won the lottery"), ("ham", "see you at lunch"))
    )
    vector = features.transform(model.vocabulary, "you won won")

    jll = classifier.joint_log_likelihood(model.classifier, vector)[0]

    # 7 vocabulary tokens, 4 tokens per class, Laplace smoothing.
    expected_spam = math.log(1 / 2) + math.log(2 / 11) + 2 * math.log(2 / 11)
    expected_ham = math.log(1 / 2) + math.log(2 / 11) + 2 * math.log(1 / 11)
    assert jll == pytest.approx([expected_spam, expected_ham])


def test_label_absent_from_training_keeps_nonzero_prior():
    model = fit_model(_dataset(("ham", "hello there"), ("ham", "hi")))

    probabilities = model.predict_proba("hello")

    assert set(probabilities) == {"spam", "ham"}
    assert 0.0 < probabilities["spam"] < probabilities["ham"]


def test_predict_proba_sums_to_one(trained_model: TrainedModel):
    probabilities = trained_model.predict_proba("free cash now")

    assert sum(probabilities.values()) == pytest.approx(1.0)
    assert trained_model.spam_score("free cash now") == probabilities["spam"]
    assert probabilities["spam"] > 0.5


def test_smoothed_class_prior():
    prior = smoothed_class_prior(["spam", "ham", "ham"], ["ham", "spam"])

    assert prior == pytest.approx(np.array([3 / 5, 2 / 5]))


def test_fit_rejects_undeclared_labels():
    matrix = features.fit_transform(_dataset(("spam", "a b")))[1]

    with pytest.raises(FormatError):
        classifier.fit(matrix, ["eggs"])


def test_fit_rejects_mismatched_lengths():
    matrix = features.fit_transform(_dataset(("spam", "a b"), ("ham", "c")))[1]

    with pytest.raises(FormatError):
        classifier.fit(matrix, ["spam"])


def test_predict_before_fit_raises_state_error(trained_model: TrainedModel):
    vector = features.transform(trained_model.vocabulary, "hello")

    with pytest.raises(StateError):
        classifier.predict(None, vector)

    with pytest.raises(StateError):
        classifier.predict(NaiveBayesModel(estimator=MultinomialNB()), vector)

    with pytest.raises(StateError):
        classifier.predict_proba(None, vector)


def test_predict_many_keeps_input_order(trained_model: TrainedModel):
    texts = ["see you at the office", "claim your free cash prize", "lunch today?"]

    assert trained_model.predict_many(texts) == ["ham", "spam", "ham"]
    assert trained_model.predict_many([]) == []


def test_score_many_matches_single_message_calls(trained_model: TrainedModel):
    texts = ["claim your free cash prize", "see you at the office", "zzz"]

    scored = trained_model.score_many(texts)

    assert [label for label, _ in scored] == trained_model.predict_many(texts)
    for (_, score), text in zip(scored, texts):
        assert score == pytest.approx(trained_model.spam_score(text))
    assert trained_model.score_many([]) == []


def test_score_many_vectorizes_the_batch_once(
    trained_model: TrainedModel, monkeypatch: pytest.MonkeyPatch
):
    calls: list[list[str]] = []
    real_transform = features.transform_texts

    def counting(vocabulary, texts):
        calls.append(list(texts))
        return real_transform(vocabulary, texts)

    monkeypatch.setattr(features, "transform_texts", counting)

    trained_model.score_many(["free cash", "lunch", "office"])

    assert calls == [["free cash", "lunch", "office"]]


def test_scores_follow_first_declared_label():
    """Models over other label sets score their first declared label."""
    dataset = Dataset(
        documents=(
            Document("junk", "free cash prize now"),
            Document("ok", "see you at lunch"),
        ),
        labels=("junk", "ok"),
    )
    model = fit_model(dataset)

    assert model.positive_label == "junk"
    assert model.spam_score("free cash") == model.predict_proba("free cash")["junk"]
    label, score = model.score_many(["free cash"])[0]
    assert label == "junk"
    assert score == pytest.approx(model.spam_score("free cash"))


def test_unfit_trained_model_raises_state_error():
    unfit = TrainedModel(
        vocabulary=features.Vocabulary(features.build_vectorizer()),
        classifier=NaiveBayesModel(estimator=MultinomialNB()),
    )

    for model in (unfit, TrainedModel(None, None)):  # type: ignore[arg-type]
        with pytest.raises(StateError):
            model.check_fitted()
        with pytest.raises(StateError):
            model.predict_many([])
        with pytest.raises(StateError):
            model.score_many([])
