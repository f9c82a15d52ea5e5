"""
Similarity Utilities - typo-tolerant text matching

The similarity score is the Jaccard index of the two strings' character
sets. It is crude on purpose: it tolerates transpositions and single-letter
slips ("pyhton", "javscript") without an edit-distance dependency, at the
cost of false positives between short unrelated strings ("ab" vs "ba").

Key Functions:
    - normalize_text(): lowercase, strip punctuation, collapse whitespace
    - calculate_similarity(): character-set Jaccard in [0, 1]
    - fuzzy_match(): containment or similarity above a threshold
    - fuzzy_contains(): is a term present anywhere in a longer text
    - term_match_ratio(): share of query terms present in a text
"""

import re
from typing import Any, Iterable, List

_PUNCTUATION = re.compile(r"[^\w\s+#.]")
_WHITESPACE = re.compile(r"\s+")

DEFAULT_THRESHOLD = 0.7
WORD_THRESHOLD = 0.75


def normalize_text(text: Any) -> str:
    """
    Normalize text for comparison.

    Keeps ``+``, ``#`` and ``.`` so "c++", "c#" and "node.js" survive;
    everything else that is not a word character becomes a space.
    Lists are joined with spaces; None becomes "".
    """
    if text is None:
        return ""
    if isinstance(text, (list, tuple, set)):
        text = " ".join(str(t) for t in text if t is not None)
    text = _PUNCTUATION.sub(" ", str(text).lower())
    # A trailing dot is sentence punctuation, not part of a token
    text = re.sub(r"\.(\s|$)", r"\1", text)
    return _WHITESPACE.sub(" ", text).strip()


def calculate_similarity(a: str, b: str) -> float:
    """
    Character-set Jaccard similarity of two strings.

    Spaces are ignored. Two empty strings are identical (1.0); one empty
    string against a non-empty one scores 0.0.
    """
    set_a = set(normalize_text(a).replace(" ", ""))
    set_b = set(normalize_text(b).replace(" ", ""))

    if not set_a and not set_b:
        return 1.0
    if not set_a or not set_b:
        return 0.0

    return len(set_a & set_b) / len(set_a | set_b)


def fuzzy_match(a: Any, b: Any, threshold: float = DEFAULT_THRESHOLD) -> bool:
    """
    Typo-tolerant match between two short strings.

    Matches when either normalized string contains the other, or when their
    character-set similarity exceeds ``threshold``. Empty input never matches.
    """
    norm_a = normalize_text(a)
    norm_b = normalize_text(b)
    if not norm_a or not norm_b:
        return False

    if norm_a in norm_b or norm_b in norm_a:
        return True

    return calculate_similarity(norm_a, norm_b) > threshold


def _windows(words: List[str], size: int) -> Iterable[str]:
    for i in range(len(words) - size + 1):
        yield " ".join(words[i:i + size])


def fuzzy_contains(text: Any, term: str, threshold: float = WORD_THRESHOLD) -> bool:
    """
    Check whether ``term`` occurs in ``text``, tolerating typos.

    Exact substring containment wins first. Otherwise the term is compared
    against every run of words in the text with the same word count, using
    the character-set similarity. Runs whose length differs from the term by
    more than half are skipped so a long word that happens to use the
    term's letters is not counted.

    Args:
        text: Free text, a list of strings, or None
        term: Term to look for (one or more words)
        threshold: Similarity above which a run counts as a match

    Returns:
        True if the term is present
    """
    norm_text = normalize_text(text)
    norm_term = normalize_text(term)
    if not norm_text or not norm_term:
        return False

    if norm_term in norm_text:
        return True

    words = norm_text.split()
    size = len(norm_term.split())
    for window in _windows(words, size):
        if abs(len(window) - len(norm_term)) > len(norm_term) / 2:
            continue
        if calculate_similarity(window, norm_term) > threshold:
            return True
    return False


def term_match_ratio(text: Any, terms: List[str], threshold: float = WORD_THRESHOLD) -> float:
    """
    Fraction of ``terms`` present in ``text``.

    A term counts when it appears as a whole word, or, failing that, when
    some word of the text is similar to it above ``threshold``.

    Returns:
        Ratio in [0, 1]; 0.0 when there are no terms
    """
    if not terms:
        return 0.0

    words = set(normalize_text(text).split())
    if not words:
        return 0.0

    matched = 0
    for term in terms:
        norm_term = normalize_text(term)
        if not norm_term:
            continue
        if norm_term in words:
            matched += 1
            continue
        if any(
            abs(len(word) - len(norm_term)) <= len(norm_term) / 2
            and calculate_similarity(word, norm_term) > threshold
            for word in words
        ):
            matched += 1

    return matched / len(terms)
