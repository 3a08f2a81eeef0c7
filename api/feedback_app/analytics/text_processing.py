# api/feedback_app/analytics/text_processing.py
"""
Free-text helpers: word frequency (stopwords + light stemming) and
near-duplicate clustering of answers.
"""
from __future__ import annotations

import re
import string
from collections import Counter
from typing import Iterable, List, NamedTuple, Optional, Tuple

from rapidfuzz import fuzz

STOP_WORDS = frozenset([
    "a", "about", "above", "after", "again", "against", "all", "am", "an", "and", "any", "are", "aren't", "as", "at",
    "be", "because", "been", "before", "being", "below", "between", "both", "but", "by",
    "can't", "cannot", "could", "couldn't", "did", "didn't", "do", "does", "doesn't", "doing", "don't", "down", "during",
    "each", "few", "for", "from", "further", "had", "hadn't", "has", "hasn't", "have", "haven't", "having", "he", "he'd",
    "he'll", "he's", "her", "here", "here's", "hers", "herself", "him", "himself", "his", "how", "how's",
    "i", "i'd", "i'll", "i'm", "i've", "if", "in", "into", "is", "isn't", "it", "it's", "its", "itself",
    "let's", "me", "more", "most", "mustn't", "my", "myself",
    "no", "nor", "not", "of", "off", "on", "once", "only", "or", "other", "ought", "our", "ours", "ourselves", "out", "over", "own",
    "same", "shan't", "she", "she'd", "she'll", "she's", "should", "shouldn't", "so", "some", "such",
    "than", "that", "that's", "the", "their", "theirs", "them", "themselves", "then", "there", "there's", "these", "they", "they'd",
    "they'll", "they're", "they've", "this", "those", "through", "to", "too", "under", "until", "up", "very",
    "was", "wasn't", "we", "we'd", "we'll", "we're", "we've", "were", "weren't", "what", "what's", "when", "when's", "where",
    "where's", "which", "while", "who", "who's", "whom", "why", "why's", "with", "won't", "would", "wouldn't",
    "you", "you'd", "you'll", "you're", "you've", "your", "yours", "yourself", "yourselves",
    # filler words that say nothing on their own in feedback
    "good", "bad", "ok", "okay", "nice",
])

DEFAULT_SIMILARITY_THRESHOLD = 80

_VOWEL = re.compile(r"[aeiou]")
_DOUBLE_END = re.compile(r"(.)\1$")
_PUNCT = string.punctuation + "“”‘’"


# -------------------- stemming -------------------- #

def _strip_plural(word: str) -> str:
    if word.endswith("sses"):
        return word[:-2]
    if word.endswith("ies"):
        # "studies" -> "studii"
        return word[:-2] + "i"
    if word.endswith("ss"):
        return word
    if word.endswith("s"):
        return word[:-1]
    return word


def _fix_stem(stem: str) -> str:
    if stem[-2:] in ("at", "bl", "iz"):
        return stem + "e"
    if _DOUBLE_END.search(stem) and stem[-1] not in ("l", "s", "z"):
        return stem[:-1]
    return stem


def _strip_ed_ing(word: str) -> str:
    if word.endswith("eed"):
        return word[:-1]
    if word.endswith("ed") and len(word) > 3:
        stem = word[:-2]
        if _VOWEL.search(stem):
            return _fix_stem(stem)
    if word.endswith("ing") and len(word) > 4:
        stem = word[:-3]
        if _VOWEL.search(stem):
            return _fix_stem(stem)
    return word


def stem(word: str) -> str:
    """Porter-style step 1a/1b: plurals, then -eed/-ed/-ing."""
    return _strip_ed_ing(_strip_plural(word))


# -------------------- word frequency -------------------- #

def tokenize(text: str) -> List[str]:
    words = []
    for raw in text.lower().split():
        w = raw.strip(_PUNCT)
        if len(w) > 1 and w not in STOP_WORDS:
            words.append(w)
    return words


def frequent_words(texts: Iterable[str], limit: int = 5) -> List[Tuple[str, int]]:
    counts: Counter = Counter()
    for text in texts:
        counts.update(stem(w) for w in tokenize(text))
    return counts.most_common(limit)


# -------------------- clustering -------------------- #

class ResponseGroup(NamedTuple):
    representative: str
    count: int


def normalize(text: str) -> str:
    return " ".join(text.lower().split())


def cluster_responses(
    texts: Iterable[str],
    threshold: int = DEFAULT_SIMILARITY_THRESHOLD,
    limit: Optional[int] = None,
) -> List[ResponseGroup]:
    """
    Greedy single pass: each answer joins the first group whose representative
    scores >= ``threshold`` (token-sort ratio), otherwise it opens a new group.
    Groups come back largest first; ties keep first-seen order.
    """
    keys: List[str] = []
    representatives: List[str] = []
    counts: List[int] = []

    for text in texts:
        key = normalize(text)
        if not key:
            continue
        for idx, existing in enumerate(keys):
            if fuzz.token_sort_ratio(key, existing) >= threshold:
                counts[idx] += 1
                break
        else:
            keys.append(key)
            representatives.append(text.strip())
            counts.append(1)

    order = sorted(range(len(keys)), key=lambda i: -counts[i])
    groups = [ResponseGroup(representatives[i], counts[i]) for i in order]
    return groups[:limit] if limit is not None else groups
