from __future__ import annotations

import math
import re
from collections import Counter

MIN_WORDS = 20
DEFAULT_RATIO = 0.3

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+(?=[A-Z0-9\"'(])")
_WORD = re.compile(r"[A-Za-z0-9']+")

STOPWORDS = frozenset(
    """
    a about above after again against all am an and any are as at be because been before being below
    between both but by can could did do does doing down during each few for from further had has have
    having he her here hers herself him himself his how i if in into is it its itself just me more most
    my myself no nor not now of off on once only or other our ours ourselves out over own same she should
    so some such than that the their theirs them themselves then there these they this those through to
    too under until up very was we were what when where which while who whom why will with would you your
    yours yourself yourselves
    """.split()
)


def word_count(text: str) -> int:
    return len(_WORD.findall(text or ""))


def split_sentences(text: str) -> list[str]:
    collapsed = re.sub(r"\s+", " ", (text or "").strip())
    if not collapsed:
        return []
    return [sentence.strip() for sentence in _SENTENCE_SPLIT.split(collapsed) if sentence.strip()]


def _tokens(sentence: str) -> list[str]:
    return [word.lower() for word in _WORD.findall(sentence) if word.lower() not in STOPWORDS]


def summarize(text: str, ratio: float = DEFAULT_RATIO) -> dict:
    """Extractive summary: keep the highest scoring sentences in their original order."""
    original_words = word_count(text)
    if original_words < MIN_WORDS:
        raise ValueError(f"Text must contain at least {MIN_WORDS} words")
    if not 0 < ratio <= 1:
        raise ValueError("ratio must be between 0 and 1")
    sentences = split_sentences(text)
    frequencies = Counter(token for sentence in sentences for token in _tokens(sentence))
    top = max(frequencies.values()) if frequencies else 1
    scores = []
    for index, sentence in enumerate(sentences):
        tokens = _tokens(sentence)
        score = sum(frequencies[token] / top for token in tokens) / len(tokens) if tokens else 0.0
        scores.append((score, index))
    keep = max(1, math.ceil(len(sentences) * ratio))
    chosen = sorted(index for _, index in sorted(scores, key=lambda pair: (-pair[0], pair[1]))[:keep])
    summary = " ".join(sentences[index] for index in chosen)
    summary_words = word_count(summary)
    return {
        "summary": summary,
        "original_words": original_words,
        "summary_words": summary_words,
        "sentences_kept": len(chosen),
        "sentences_total": len(sentences),
        "compression": round((1 - summary_words / original_words) * 100, 1),
    }
