"""
Search, filter and sort over the in-memory catalog.

Every function here is pure: it takes the records and the user's current
search term and sort order, and returns a fresh list without touching the
store, so it is safe to call on every keystroke.
"""

import logging
import unicodedata
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from rapidfuzz import fuzz
from rapidfuzz.utils import default_process

from edzip_cli.models.config import (
    DEFAULT_FUZZY_THRESHOLD,
    DEFAULT_SORT_ORDER,
    SortOrder,
)
from edzip_cli.models.record import Record
from edzip_cli.utils.hangul import extract_chosung, is_chosung_only

log = logging.getLogger(__name__)


class SearchMode(str, Enum):
    """Which matching path a search term selected."""

    ALL = "all"
    CHOSUNG = "chosung"
    FUZZY = "fuzzy"


@dataclass(frozen=True)
class QueryResult:
    """The ordered view handed to the presentation layer."""

    records: tuple[Record, ...]
    mode: SearchMode
    term: str
    sort_order: SortOrder
    total: int

    @property
    def is_empty(self) -> bool:
        return not self.records

    def __len__(self) -> int:
        return len(self.records)


def is_chosung_query(term: str) -> bool:
    """True when the term consists only of Hangul leading consonants."""
    return is_chosung_only(term)


def _chosung_filter(records: Sequence[Record], term: str) -> list[Record]:
    return [r for r in records if term in extract_chosung(r.name)]


def _fuzzy_score(term: str, name: str, cutoff: float) -> float:
    # partial_ratio aligns the shorter string inside the longer one, so a term
    # longer than the name is compared whole and its extra length counts as errors
    if len(term) > len(name):
        return fuzz.ratio(term, name, score_cutoff=cutoff)
    return fuzz.partial_ratio(term, name, score_cutoff=cutoff)


def _fuzzy_filter(
    records: Sequence[Record], term: str, threshold: float
) -> list[Record]:
    """
    Approximate substring match on the name, best matches first.

    `threshold` is the tolerated error ratio (0.0 = exact, 1.0 = anything with
    some overlap). The term is aligned against the best window of the name, so
    where the match occurs in the name does not matter.
    """
    cutoff = (1.0 - threshold) * 100
    processed_term = default_process(term)
    scored: list[tuple[float, int, Record]] = []
    for index, record in enumerate(records):
        score = _fuzzy_score(processed_term, default_process(record.name), cutoff)
        if score > 0 and score >= cutoff:
            scored.append((score, index, record))

    scored.sort(key=lambda item: (-item[0], item[1]))
    return [record for _, _, record in scored]


def filter_records(
    records: Sequence[Record],
    term: str,
    threshold: float = DEFAULT_FUZZY_THRESHOLD,
) -> tuple[list[Record], SearchMode]:
    """
    Selects the records matching a search term.

    Args:
        records: The catalog, in store order.
        term: The raw search string. Empty returns everything.
        threshold: Fuzzy tolerance, used only when the term is not chosung-only.

    Returns:
        The matching records and the search mode that produced them.
    """
    if not term:
        return list(records), SearchMode.ALL

    if is_chosung_query(term):
        return _chosung_filter(records, term), SearchMode.CHOSUNG

    return _fuzzy_filter(records, term, threshold), SearchMode.FUZZY


def _name_sort_key(record: Record) -> tuple[str, str]:
    # Case- and accent-insensitive primary key, raw string as tie-breaker
    decomposed = unicodedata.normalize("NFKD", record.name or "")
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return unicodedata.normalize("NFC", base).casefold(), record.name or ""


def sort_records(records: Sequence[Record], order: SortOrder) -> list[Record]:
    """
    Returns a sorted copy of `records`. Ties keep their input order.

    Records without a parseable upload date are placed last for both date
    orders, in the order they were given.
    """
    order = SortOrder(order)
    if order is SortOrder.NAME:
        return sorted(records, key=_name_sort_key)

    dated = [r for r in records if r.uploaded_at is not None]
    undated = [r for r in records if r.uploaded_at is None]
    dated.sort(
        key=lambda r: r.uploaded_at, reverse=order is SortOrder.UPLOAD_DESC
    )
    return dated + undated


def run_query(
    records: Sequence[Record],
    term: str = "",
    sort_order: SortOrder = DEFAULT_SORT_ORDER,
    threshold: float = DEFAULT_FUZZY_THRESHOLD,
) -> QueryResult:
    """Filters the catalog by `term`, then orders the matches by `sort_order`."""
    matched, mode = filter_records(records, term, threshold)
    ordered = sort_records(matched, sort_order)
    log.debug(
        f"Query '{term}' ({mode.value}, {SortOrder(sort_order).value}): "
        f"{len(ordered)}/{len(records)} records"
    )
    return QueryResult(
        records=tuple(ordered),
        mode=mode,
        term=term,
        sort_order=SortOrder(sort_order),
        total=len(records),
    )
