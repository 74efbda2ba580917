"""
Keyword fallback search.

Used when no embedding backend is available. Scoring is deliberately
crude: count query terms in each chunk, add a bonus for the exact phrase.
No stemming and no IDF weighting.
"""

import re
from typing import Iterable, List

from kb_retrieval.vector_store import IndexEntry, SearchResult


def tokenize_query(query: str, min_term_length: int = 3) -> List[str]:
    """Lowercase whitespace-separated terms, dropping short ones."""
    return [
        term for term in re.split(r"\s+", query.lower())
        if len(term) >= min_term_length
    ]


class KeywordSearcher:
    """
    Term-frequency + phrase-match scorer over chunk contents.

    score = sum(content.count(term) for term in query terms)
            + phrase_bonus if the whole query occurs in the content
    """

    def __init__(self, min_term_length: int = 3, phrase_bonus: int = 10):
        self.min_term_length = min_term_length
        self.phrase_bonus = phrase_bonus

    def score(self, query: str, content: str) -> int:
        text = content.lower()
        phrase = query.lower()

        score = sum(
            text.count(term)
            for term in tokenize_query(query, self.min_term_length)
        )
        if phrase.strip() and phrase in text:
            score += self.phrase_bonus
        return score

    def search(
        self,
        query: str,
        entries: Iterable[IndexEntry],
        top_k: int = 5
    ) -> List[SearchResult]:
        """
        Rank entries by keyword score.

        Entries with no match at all are dropped; ties keep store order.
        """
        if top_k <= 0:
            return []

        results = []
        for entry in entries:
            score = self.score(query, entry.content)
            if score > 0:
                results.append(SearchResult(entry=entry, score=float(score)))

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:top_k]
