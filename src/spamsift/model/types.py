from typing import Final, TypedDict

from sklearn.feature_extraction.text import CountVectorizer
from sklearn.naive_bayes import MultinomialNB

# Declared label order. Ties in prediction resolve to the earlier label.
LABELS: Final[tuple[str, ...]] = ("spam", "ham")

# Relation name written into ARFF caches.
RELATION: Final[str] = "SMS spam"

# Self-identifying tag stored in every persisted model file.
MODEL_FORMAT: Final[str] = "spamsift-mnb/1"


class ModelBundle(TypedDict):
    format: str
    labels: list[str]
    vectorizer: CountVectorizer
    classifier: MultinomialNB
