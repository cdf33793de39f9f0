import re
import unicodedata
from typing import Dict, FrozenSet, List, Set

WORD_RE = re.compile(r"\w+", re.UNICODE)
NON_WORD_RE = re.compile(r"[^\w\s]+", re.UNICODE)
SPACE_RE = re.compile(r"\s+")

STOPWORDS: FrozenSet[str] = frozenset("""
a an the is are was were be been being am i me my we our us you your yours he she it its
they them their this that these those there here what which who whom whose when where why how
do does did doing done have has had having can could will would shall should may might must
to of in on at for from by with about into over under up down out off as than then so and or
but if not no nor too very just also any some all each both few more most other such only own
same please hi hello hey tell know like want need get let thanks thank ok okay
""".split())

# Related vocabulary collapsed onto a shared concept feature so that
# "when do you open" can match "what are your hours".
CONCEPTS: Dict[str, List[str]] = {
    "hours": [
        "hour", "hours", "time", "times", "open", "opening", "opens", "close", "closing", "closes",
        "closed", "schedule", "when", "today", "tonight", "weekend", "weekday", "holiday",
        "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
        "mon", "tue", "wed", "thu", "fri", "sat", "sun",
    ],
    "price": [
        "price", "prices", "pricing", "cost", "costs", "much", "fee", "fees", "charge",
        "rate", "rates", "expensive", "cheap", "quote", "budget",
    ],
    "location": [
        "where", "location", "located", "address", "direction", "directions", "map", "parking",
        "near", "nearest", "branch",
    ],
    "contact": [
        "contact", "phone", "call", "email", "mail", "reach", "number", "talk", "speak", "whatsapp",
    ],
    "booking": [
        "book", "booking", "appointment", "appointments", "reserve", "reservation", "slot", "visit",
    ],
    "delivery": [
        "deliver", "delivery", "deliveries", "shipping", "ship", "courier", "dispatch",
    ],
    "refund": [
        "refund", "refunds", "return", "returns", "exchange", "cancel", "cancellation", "warranty",
    ],
    "payment": [
        "pay", "payment", "payments", "card", "cash", "credit", "invoice", "paypal",
    ],
}


def normalize_text(text: str) -> str:
    """Lower-case, strip punctuation and collapse whitespace."""
    normalized = unicodedata.normalize("NFKC", text or "").lower()
    normalized = NON_WORD_RE.sub(" ", normalized).replace("_", " ")
    return SPACE_RE.sub(" ", normalized).strip()


def tokenize(text: str) -> List[str]:
    return WORD_RE.findall(normalize_text(text))


def stem(token: str) -> str:
    """Light English suffix stripping; good enough to align plurals and -ing forms."""
    if len(token) > 5 and token.endswith("ing"):
        return token[:-3]
    if len(token) > 4 and token.endswith("ies"):
        return token[:-3] + "y"
    if len(token) > 4 and token.endswith("ed") and not token.endswith("eed"):
        return token[:-2]
    if len(token) > 3 and token.endswith("s") and not token.endswith(("ss", "us", "is")):
        return token[:-1]
    return token


CONCEPT_INDEX: Dict[str, str] = {
    stem(word): concept for concept, words in CONCEPTS.items() for word in words
}


def informative_length(text: str) -> int:
    """Number of word characters left after normalization."""
    return len(normalize_text(text).replace(" ", ""))


def extract_features(text: str) -> Set[str]:
    """
    Feature set used for similarity: content-word stems plus '#concept' tags.

    A text made only of stop words keeps all of its words so that it can
    still match itself exactly.
    """
    tokens = tokenize(text)
    if not tokens:
        return set()
    stems = [stem(token) for token in tokens]
    content = {s for token, s in zip(tokens, stems) if token not in STOPWORDS}
    features = content or set(stems)
    features.update(f"#{CONCEPT_INDEX[s]}" for s in stems if s in CONCEPT_INDEX)
    return features
