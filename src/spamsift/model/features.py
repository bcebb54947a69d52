from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final

from scipy.sparse import csr_matrix
from sklearn.exceptions import NotFittedError
from sklearn.feature_extraction.text import CountVectorizer
from sklearn.utils.validation import check_is_fitted

from spamsift.errors import FormatError, StateError
from spamsift.model.data import Dataset, Document

# Maximal runs of word characters, single characters included.
TOKEN_PATTERN: Final[str] = r"(?u)\w+"


def build_vectorizer() -> CountVectorizer:
    """
    Return an unfit bag-of-words vectorizer.

    Tokens are lower-cased unigrams matching `TOKEN_PATTERN`; no stemming,
    no stop-word removal, no frequency cut-offs. Values are raw counts.
    """
    return CountVectorizer(
        token_pattern=TOKEN_PATTERN,
        lowercase=True,
        ngram_range=(1, 1),
        stop_words=None,
        min_df=1,
    )


@dataclass(frozen=True)
class Vocabulary:
    """
    The fitted token -> feature index mapping.

    Wraps the fitted `CountVectorizer` so the exact same tokenization is
    applied at training and inference time.
    """

    vectorizer: CountVectorizer

    @property
    def index(self) -> dict[str, int]:
        return dict(self.vectorizer.vocabulary_)

    @property
    def tokens(self) -> list[str]:
        return self.vectorizer.get_feature_names_out().tolist()

    def __len__(self) -> int:
        return len(self.vectorizer.vocabulary_)

    def __contains__(self, token: object) -> bool:
        return token in self.vectorizer.vocabulary_


def fit_transform(dataset: Dataset) -> tuple[Vocabulary, csr_matrix]:
    """
    Build the vocabulary from the training documents and vectorize them.

    Parameters
    ----------
    dataset : Dataset
        Training documents. Not modified.

    Returns
    -------
    tuple[Vocabulary, csr_matrix]
        - The fitted vocabulary.
        - Token counts of shape (n_documents, len(vocabulary)).

    Raises
    ------
    FormatError
        If the dataset is empty or contains no tokens at all.
    """
    if len(dataset) == 0:
        raise FormatError("Cannot fit features on an empty dataset.")

    vectorizer = build_vectorizer()

    try:
        features = vectorizer.fit_transform(dataset.texts)
    except ValueError as exc:
        # Raised by scikit-learn when no document contains a token.
        raise FormatError(f"Cannot fit features: {exc}") from exc

    return Vocabulary(vectorizer), csr_matrix(features)


def check_fitted(vocabulary: Vocabulary | None) -> Vocabulary:
    """Return `vocabulary`, raising StateError if it is missing or has not been fit."""
    if not isinstance(vocabulary, Vocabulary):
        raise StateError("Features must be fit before transform.")

    try:
        check_is_fitted(vocabulary.vectorizer, "vocabulary_")
    except NotFittedError as exc:
        raise StateError("Features must be fit before transform.") from exc

    return vocabulary


def transform_texts(vocabulary: Vocabulary | None, texts: Iterable[str]) -> csr_matrix:
    """
    Vectorize texts with an already-fit vocabulary.

    Tokens that are not in the vocabulary are ignored.

    Raises
    ------
    StateError
        If no vocabulary is given or it has not been fit.
    """
    vocabulary = check_fitted(vocabulary)
    return csr_matrix(vocabulary.vectorizer.transform(list(texts)))


def transform(vocabulary: Vocabulary | None, document: Document | str) -> csr_matrix:
    """Vectorize a single document (or raw text) into a 1 x len(vocabulary) row."""
    text = document.text if isinstance(document, Document) else document
    return transform_texts(vocabulary, [text])
