import itertools
import logging
import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any, Final

import arff

from spamsift.errors import FormatError, StorageIOError
from spamsift.model.data import Dataset, Document, label_distribution, load_raw
from spamsift.model.types import LABELS

logger = logging.getLogger(__name__)

LABEL_ATTRIBUTE = "label"
TEXT_ATTRIBUTE = "text"

# Characters escaped inside a quoted value; the decoder reverses each one.
_ESCAPED: Final = re.compile(r"[\\'\"%\x00-\x1f]")
_NAMED_ESCAPES: Final[dict[str, str]] = {
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
    "%": "\\%",
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
    "\b": "\\b",
    "\f": "\\f",
}


def quote_value(value: str) -> str:
    """Single-quote and escape one data value so it always decodes to itself."""
    escaped = _ESCAPED.sub(
        lambda m: _NAMED_ESCAPES.get(m.group(), f"\\{ord(m.group()):03o}"), value
    )
    return f"'{escaped}'"


class QuotingArffEncoder(arff.ArffEncoder):
    """
    ArffEncoder that quotes every data value.

    liac-arff leaves values without whitespace or punctuation bare, and
    reads a bare `?` back as missing and a bare `{...}` as a sparse row.
    """

    def iter_encode(self, obj: dict[str, Any]) -> Iterator[str]:
        header = {key: value for key, value in obj.items() if key != "data"}
        yield from itertools.takewhile(
            lambda line: line != "@DATA", super().iter_encode(header)
        )
        yield "@DATA"
        for row in obj.get("data", []):
            yield ",".join(quote_value(str(value)) for value in row)
        yield ""


def save_tabular(dataset: Dataset, path: Path) -> None:
    """
    Write a dataset and its schema to an ARFF file.

    The file declares a nominal `label` attribute (the class attribute)
    listing the declared labels, and a `STRING` attribute holding the text.
    Every value in the data section is quoted.

    Raises
    ------
    StorageIOError
        If the file cannot be written.
    """
    payload = {
        "relation": dataset.relation,
        "attributes": [
            (LABEL_ATTRIBUTE, list(dataset.labels)),
            (TEXT_ATTRIBUTE, "STRING"),
        ],
        "data": [[document.label, document.text] for document in dataset.documents],
    }

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            for line in QuotingArffEncoder().iter_encode(payload):
                f.write(line + "\n")
    except OSError as exc:
        raise StorageIOError(f"Could not write dataset {path}: {exc}") from exc

    logger.info("saved dataset", extra={"path": str(path), "n_documents": len(dataset)})


def load_tabular(path: Path) -> Dataset:
    """
    Load a dataset previously written by `save_tabular`.

    The `label` attribute is treated as the class attribute; its declared
    values become the dataset's label set.

    Raises
    ------
    StorageIOError
        If the file is missing or unreadable.
    FormatError
        If the file is not valid ARFF, its attributes do not match the
        expected (nominal label, string text) schema, or a row holds a
        missing value.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            payload = arff.load(f)
    except (OSError, UnicodeDecodeError) as exc:
        raise StorageIOError(f"Could not read dataset {path}: {exc}") from exc
    except arff.ArffException as exc:
        raise FormatError(f"Corrupt dataset file {path}: {exc}") from exc

    attributes = payload["attributes"]
    if len(attributes) != 2:
        raise FormatError(f"Expected 2 attributes in {path}, found {len(attributes)}")

    (label_name, label_type), (text_name, text_type) = attributes
    if (
        label_name != LABEL_ATTRIBUTE
        or not isinstance(label_type, list)
        or text_name != TEXT_ATTRIBUTE
        or text_type != "STRING"
    ):
        raise FormatError(f"Unexpected attribute schema in {path}: {attributes}")

    documents: list[Document] = []
    for row_number, (label, text) in enumerate(payload["data"], start=1):
        # liac-arff decodes "?" and empty values as missing.
        if label is None or text is None:
            raise FormatError(f"Missing value in row {row_number} of {path}")
        documents.append(Document(label=label, text=text))

    dataset = Dataset(
        documents=tuple(documents),
        labels=tuple(label_type),
        relation=payload["relation"],
    )

    logger.info(
        "loaded dataset",
        extra={
            "path": str(path),
            "n_documents": len(dataset),
            "label_counts": label_distribution(dataset),
        },
    )
    return dataset


def load_cached(
    raw_path: Path, arff_path: Path, labels: tuple[str, ...] = LABELS
) -> Dataset:
    """
    Load a dataset from its ARFF cache, rebuilding the cache when needed.

    If the cache is missing, unreadable, corrupt, or declares a different
    label set, the raw corpus is loaded instead and the cache rewritten.
    """
    try:
        dataset = load_tabular(arff_path)
    except (StorageIOError, FormatError) as exc:
        logger.info(
            "dataset cache unavailable, loading raw corpus",
            extra={"path": str(arff_path), "reason": exc.kind.value},
        )
    else:
        if dataset.labels == labels:
            return dataset
        logger.warning(
            "dataset cache declares a different label set, rebuilding",
            extra={"path": str(arff_path), "labels": list(dataset.labels)},
        )

    dataset = load_raw(raw_path, labels)
    save_tabular(dataset, arff_path)
    return dataset
