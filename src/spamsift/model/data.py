import logging
import re
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from spamsift.errors import StorageIOError
from spamsift.model.types import LABELS, RELATION

logger = logging.getLogger(__name__)

# Label and text are separated by the first run of whitespace.
FIELD_SEPARATOR = re.compile(r"\s+")


@dataclass(frozen=True)
class Document:
    """A single labelled message."""

    label: str
    text: str


@dataclass(frozen=True)
class Dataset:
    """
    An ordered, immutable collection of documents sharing one schema.

    The schema is the declared label set (`labels`, in declared order) plus
    a free-text attribute. Train, test and inference data must share it so
    that they map into the same feature space.
    """

    documents: tuple[Document, ...]
    labels: tuple[str, ...] = LABELS
    relation: str = RELATION

    def __post_init__(self) -> None:
        for document in self.documents:
            if document.label not in self.labels:
                raise ValueError(
                    f"label {document.label!r} is not one of {list(self.labels)}"
                )

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def texts(self) -> list[str]:
        return [document.text for document in self.documents]

    @property
    def targets(self) -> list[str]:
        return [document.label for document in self.documents]


def parse_line(line: str) -> Document | None:
    """
    Split one raw corpus line into a Document.

    Returns None when the line does not split into exactly two non-empty
    parts (label and text).
    """
    parts = FIELD_SEPARATOR.split(line.rstrip("\r\n"), maxsplit=1)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return Document(label=parts[0], text=parts[1])


def load_raw(path: Path, labels: tuple[str, ...] = LABELS) -> Dataset:
    """
    Load a raw "<label><whitespace><text>" corpus into a Dataset.

    Malformed lines, and lines whose label is not in `labels`, are skipped
    with a warning. Input order is preserved.

    Parameters
    ----------
    path : Path
        UTF-8 text file with one document per line.
    labels : tuple[str, ...]
        Declared label set, in declared order.

    Returns
    -------
    Dataset
        Every valid document from the file.

    Raises
    ------
    StorageIOError
        If the file cannot be opened or decoded.
    """
    documents: list[Document] = []
    skipped = 0

    try:
        with path.open("r", encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                document = parse_line(line)

                if document is None or document.label not in labels:
                    skipped += 1
                    logger.warning(
                        "invalid row",
                        extra={"path": str(path), "line_number": line_number},
                    )
                    continue

                documents.append(document)
    except (OSError, UnicodeDecodeError) as exc:
        raise StorageIOError(f"Could not read dataset {path}: {exc}") from exc

    dataset = Dataset(documents=tuple(documents), labels=labels)

    logger.info(
        "loaded raw dataset",
        extra={
            "path": str(path),
            "n_documents": len(dataset),
            "n_skipped": skipped,
            "label_counts": label_distribution(dataset),
        },
    )
    return dataset


def label_distribution(dataset: Dataset) -> dict[str, int]:
    """Count documents per declared label, including labels with no documents."""
    counts = (
        pd.Series(dataset.targets, dtype="object")
        .value_counts()
        .reindex(list(dataset.labels), fill_value=0)
    )
    return {label: int(count) for label, count in counts.items()}
