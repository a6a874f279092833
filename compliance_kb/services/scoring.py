from typing import List, Tuple

from compliance_kb.schemas.chunk import Chunk

MAX_SCORE = 100
MIN_TERM_LENGTH = 3

PHRASE_IN_CONTENT = 50
PHRASE_IN_TITLE = 40
TERM_IN_TITLE = 15
TERM_IN_SECTION_TITLE = 12
TERM_IN_KEYWORD = 10
TERM_IN_REGULATORY_REF = 8
TERM_IN_CONTENT = 5
MAX_OCCURRENCE_BONUS = 5


def query_terms(query: str) -> List[str]:
    """Lower-cased whitespace tokens of the query, short tokens dropped."""
    return [term for term in query.lower().split() if len(term) >= MIN_TERM_LENGTH]


def score_chunk(chunk: Chunk, query: str) -> Tuple[int, List[str]]:
    """
    Heuristic relevance of a chunk for a free-text query.

    Phrase hits in content and title dominate, then per-term hits in title,
    section title, keywords, regulatory refs and content. The sum is capped
    at 100, not rescaled.

    Returns:
        (score, matched_terms) where matched_terms are the query terms found
        anywhere in the chunk's search text.
    """
    phrase = query.lower()
    terms = query_terms(query)

    content = (chunk.content or "").lower()
    title = (chunk.source_title or "").lower()
    section_title = (chunk.section_title or "").lower()
    keywords = [k.lower() for k in chunk.keywords or []]
    regulatory_refs = [r.lower() for r in chunk.regulatory_refs or []]

    score = 0
    if phrase in content:
        score += PHRASE_IN_CONTENT
    if phrase in title:
        score += PHRASE_IN_TITLE

    for term in terms:
        if term in title:
            score += TERM_IN_TITLE
        if term in section_title:
            score += TERM_IN_SECTION_TITLE
        if any(term in keyword for keyword in keywords):
            score += TERM_IN_KEYWORD
        if any(term in ref for ref in regulatory_refs):
            score += TERM_IN_REGULATORY_REF
        if term in content:
            score += TERM_IN_CONTENT
            score += min(content.count(term), MAX_OCCURRENCE_BONUS)

    search_text = chunk.search_text or ""
    matched_terms = [term for term in terms if term in search_text]

    return min(score, MAX_SCORE), matched_terms
