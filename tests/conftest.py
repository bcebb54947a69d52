from pathlib import Path

import pytest

from spamsift.model.data import Dataset, Document
from spamsift.model.training import TrainedModel, fit_model

TRAIN_LINES = [
    "spam WINNER!! You have won a 1 lakh prize, call now to claim",
    "ham Are you coming to lunch today?",
    "spam Free entry to win cash prize, text WIN now",
    "ham I will call you later tonight",
    "spam Claim your free cash reward now",
    "ham See you at the office tomorrow",
]

TEST_LINES = [
    "spam win a free cash prize now",
    "ham see you at lunch tomorrow",
]


@pytest.fixture()
def train_file(tmp_path: Path) -> Path:
    """A small raw training corpus on disk."""
    path = tmp_path / "train.txt"
    path.write_text("\n".join(TRAIN_LINES) + "\n", encoding="utf-8")
    return path


@pytest.fixture()
def test_file(tmp_path: Path) -> Path:
    """A small raw held-out corpus on disk."""
    path = tmp_path / "test.txt"
    path.write_text("\n".join(TEST_LINES) + "\n", encoding="utf-8")
    return path


@pytest.fixture()
def train_dataset() -> Dataset:
    """The training corpus as an in-memory Dataset."""
    return Dataset(
        documents=tuple(
            Document(*line.split(" ", 1)) for line in TRAIN_LINES
        )
    )


@pytest.fixture()
def test_dataset() -> Dataset:
    """The held-out corpus as an in-memory Dataset."""
    return Dataset(
        documents=tuple(Document(*line.split(" ", 1)) for line in TEST_LINES)
    )


@pytest.fixture()
def trained_model(train_dataset: Dataset) -> TrainedModel:
    """A model fit on the training corpus."""
    return fit_model(train_dataset)
