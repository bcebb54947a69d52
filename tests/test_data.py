import logging
from pathlib import Path

import pytest

from spamsift.errors import ErrorKind, StorageIOError
from spamsift.model.data import Dataset, Document, label_distribution, load_raw, parse_line


def test_load_raw_preserves_order(train_file: Path):
    """Documents come back in file order with label and text split."""
    dataset = load_raw(train_file)

    assert len(dataset) == 6
    assert dataset.documents[0] == Document(
        "spam", "WINNER!! You have won a 1 lakh prize, call now to claim"
    )
    assert dataset.documents[1] == Document("ham", "Are you coming to lunch today?")
    assert dataset.targets == ["spam", "ham", "spam", "ham", "spam", "ham"]
    assert dataset.labels == ("spam", "ham")


def test_load_raw_splits_on_first_whitespace_run(tmp_path: Path):
    """Tabs and repeated spaces separate label from text; inner spacing is kept."""
    path = tmp_path / "corpus.txt"
    path.write_text("ham\t\t see  you   there\n", encoding="utf-8")

    dataset = load_raw(path)

    assert dataset.documents == (Document("ham", "see  you   there"),)


def test_load_raw_skips_malformed_lines(tmp_path: Path, caplog: pytest.LogCaptureFixture):
    """N valid and M invalid lines load exactly N documents, with warnings."""
    path = tmp_path / "corpus.txt"
    path.write_text(
        "\n".join(
            [
                "spam you won",
                "",  # blank line
                "ham",  # label only
                "spam   ",  # empty text
                "   ham leading whitespace means an empty label",
                "eggs not a declared label",
                "ham see you soon",
            ]
        )
        + "\n",
        encoding="utf-8",
    )

    with caplog.at_level(logging.WARNING):
        dataset = load_raw(path)

    assert dataset.texts == ["you won", "see you soon"]
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 5
    assert [r.line_number for r in warnings] == [2, 3, 4, 5, 6]


def test_load_raw_missing_file_raises_io_error(tmp_path: Path):
    with pytest.raises(StorageIOError) as exc_info:
        load_raw(tmp_path / "missing.txt")

    assert exc_info.value.kind is ErrorKind.IO
    assert isinstance(exc_info.value, OSError)


def test_load_raw_rejects_undecodable_file(tmp_path: Path):
    path = tmp_path / "latin1.txt"
    path.write_bytes("ham caf\xe9 au lait\n".encode("latin-1"))

    with pytest.raises(StorageIOError):
        load_raw(path)


def test_parse_line_rejects_single_token():
    assert parse_line("spam") is None
    assert parse_line("spam hello\r\n") == Document("spam", "hello")


def test_dataset_rejects_undeclared_label():
    with pytest.raises(ValueError):
        Dataset(documents=(Document("eggs", "hello"),))


def test_label_distribution_counts_every_declared_label():
    dataset = Dataset(documents=(Document("ham", "a"), Document("ham", "b")))

    assert label_distribution(dataset) == {"spam": 0, "ham": 2}
