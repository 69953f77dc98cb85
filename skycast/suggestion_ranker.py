"""Filter, score and deduplicate geocoding candidates for city autocomplete.

Every rule is a named table entry so it can be exercised on its own:

- `FILTER_RULES`: a candidate is dropped when any predicate returns True.
- `SCORE_RULES`: each matching predicate adds its weight to the priority.

`rank()` applies the filters, scores the survivors, stable-sorts by priority,
keeps the first occurrence of each (name, country) pair and returns at most
`MAX_SUGGESTIONS` entries without the priority field.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence

from skycast.domain import CitySuggestion, RawLocationCandidate
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="suggestion_ranker")

MAX_SUGGESTIONS = 5
MIN_NAME_LENGTH = 3
SHORT_QUERY_LENGTH = 3
SHORT_NAME_LENGTH = 3
PROBLEMATIC_MIN_NAME_LENGTH = 4
LONG_NAME_LENGTH = 5

# Countries whose results get a scoring boost.
MAJOR_COUNTRIES = frozenset({
    "US", "CA", "GB", "AU", "DE", "FR", "IT", "ES", "NL", "JP", "KR", "IN", "CN", "BR", "MX", "AR",
})

# Sparse geocoding coverage; only named-region, longer results survive.
PROBLEMATIC_COUNTRIES = frozenset({
    "NG", "CD", "CF", "TD", "SO", "SS", "ER", "DJ", "KM", "ST", "CV",
    "GW", "GM", "SL", "LR", "ML", "BF", "NE", "MR", "GN", "SN",
})

# Airport/city codes allowed through when both query and name are short.
WELL_KNOWN_CODES = frozenset({
    "NYC", "LAX", "SFO", "DFW", "ORD", "JFK", "LGA", "BOS", "ATL", "DEN", "SEA", "LAS", "MIA",
    "PHX", "CLT", "MSP", "DTW", "PHL", "BWI", "DCA", "IAD", "SLC", "PDX", "SAN", "TPA", "STL",
    "PIT", "CLE", "MCI", "OAK", "SNA", "BUR", "MDW", "HOU", "IAH", "MSY", "RDU", "BNA", "CVG",
    "CMH", "IND", "MKE", "BUF", "ROC", "SYR", "ALB", "BDL", "PVD", "BGR",
})

# Points of interest rather than populated places.
OBSCURE_WORDS = (
    "railway", "station", "airport", "hospital", "school", "farm", "ranch", "creek", "river",
    "road", "street", "avenue", "lane", "district", "ward", "quarter", "sector", "zone", "area",
    "region", "subdivision", "hamlet", "village", "settlement", "camp", "base", "facility",
    "center", "centre",
)

WELL_KNOWN_CITIES = (
    "new york", "los angeles", "chicago", "houston", "phoenix", "philadelphia", "san antonio",
    "san diego", "dallas", "san jose", "austin", "jacksonville", "fort worth", "columbus",
    "charlotte", "san francisco", "indianapolis", "seattle", "denver", "washington", "boston",
    "el paso", "detroit", "nashville", "portland", "oklahoma city", "las vegas", "louisville",
    "baltimore", "milwaukee", "albuquerque", "tucson", "fresno", "sacramento", "kansas city",
    "mesa", "atlanta", "omaha", "colorado springs", "raleigh", "miami", "oakland", "minneapolis",
    "tulsa", "cleveland", "wichita", "arlington", "tampa", "bakersfield", "new orleans",
    "honolulu", "anaheim", "santa ana", "corpus christi", "riverside", "lexington", "stockton",
    "toledo", "st. paul", "newark", "greensboro", "buffalo", "plano", "lincoln", "henderson",
    "fort wayne", "jersey city", "st. petersburg", "chula vista", "norfolk", "orlando",
    "chandler", "laredo", "madison", "lubbock", "winston salem", "garland", "glendale",
    "hialeah", "reno", "baton rouge", "irvine", "chesapeake", "irving", "scottsdale",
    "north las vegas", "fremont", "gilbert", "san bernardino", "boise", "birmingham",
)


def _whole_word_pattern(words: Iterable[str]) -> re.Pattern:
    """Compile a case-insensitive `\\b(a|b|...)\\b` alternation."""
    return re.compile(r"\b(" + "|".join(re.escape(w) for w in words) + r")\b", re.IGNORECASE)


GARBAGE_NAME_PATTERN = re.compile(r"^[\d\W]+$")
OBSCURE_WORD_PATTERN = _whole_word_pattern(OBSCURE_WORDS)
WELL_KNOWN_CITY_PATTERN = _whole_word_pattern(WELL_KNOWN_CITIES)


@dataclass(frozen=True)
class FilterRule:
    """Exclude a candidate when `predicate(candidate, query)` is True."""
    name: str
    predicate: Callable[[RawLocationCandidate, str], bool]

    def excludes(self, candidate: RawLocationCandidate, query: str) -> bool:
        return bool(self.predicate(candidate, query))


@dataclass(frozen=True)
class ScoreRule:
    """Add `weight` to a candidate's priority when `predicate(candidate)` is True."""
    name: str
    predicate: Callable[[RawLocationCandidate], bool]
    weight: int

    def score(self, candidate: RawLocationCandidate) -> int:
        return self.weight if self.predicate(candidate) else 0


def is_too_short(candidate: RawLocationCandidate, _query: str) -> bool:
    return len(candidate.name) < MIN_NAME_LENGTH


def is_garbage_name(candidate: RawLocationCandidate, _query: str) -> bool:
    return bool(GARBAGE_NAME_PATTERN.match(candidate.name))


def is_unknown_short_code(candidate: RawLocationCandidate, query: str) -> bool:
    """Short query + short name only passes for a well-known code like "NYC"."""
    if len(query) > SHORT_QUERY_LENGTH or len(candidate.name) > SHORT_NAME_LENGTH:
        return False
    return candidate.name.upper() not in WELL_KNOWN_CODES


def is_low_quality_region(candidate: RawLocationCandidate, _query: str) -> bool:
    if candidate.country not in PROBLEMATIC_COUNTRIES:
        return False
    return not candidate.state or len(candidate.name) < PROBLEMATIC_MIN_NAME_LENGTH


def has_obscure_word(candidate: RawLocationCandidate, _query: str) -> bool:
    return bool(OBSCURE_WORD_PATTERN.search(candidate.name))


FILTER_RULES: tuple[FilterRule, ...] = (
    FilterRule("too_short", is_too_short),
    FilterRule("garbage_name", is_garbage_name),
    FilterRule("unknown_short_code", is_unknown_short_code),
    FilterRule("low_quality_region", is_low_quality_region),
    FilterRule("obscure_word", has_obscure_word),
)

SCORE_RULES: tuple[ScoreRule, ...] = (
    ScoreRule("major_country", lambda c: c.country in MAJOR_COUNTRIES, 10),
    ScoreRule("united_states", lambda c: c.country == "US", 5),
    ScoreRule("has_state", lambda c: bool(c.state), 5),
    ScoreRule("long_name", lambda c: len(c.name) >= LONG_NAME_LENGTH, 3),
    ScoreRule("well_known_city", lambda c: bool(WELL_KNOWN_CITY_PATTERN.search(c.name)), 15),
)


def passes_filters(
    candidate: RawLocationCandidate,
    query: str,
    rules: Sequence[FilterRule] = FILTER_RULES,
) -> bool:
    """Return True when no filter rule excludes the candidate."""
    for rule in rules:
        if rule.excludes(candidate, query):
            logger.debug(f"Dropping suggestion '{candidate.name}' ({candidate.country}): {rule.name}")
            return False
    return True


def score_candidate(candidate: RawLocationCandidate, rules: Sequence[ScoreRule] = SCORE_RULES) -> int:
    """Sum the weights of every matching score rule."""
    return sum(rule.score(candidate) for rule in rules)


def dedupe_key(candidate: RawLocationCandidate) -> str:
    return f"{candidate.name.lower()}-{candidate.country}"


def rank(
    candidates: Sequence[RawLocationCandidate],
    query: str,
    *,
    limit: int = MAX_SUGGESTIONS,
    filter_rules: Sequence[FilterRule] = FILTER_RULES,
    score_rules: Sequence[ScoreRule] = SCORE_RULES,
) -> List[CitySuggestion]:
    """Return up to `limit` suggestions, best match first. Never raises on empty input."""
    scored = [
        (score_candidate(c, score_rules), c)
        for c in candidates
        if passes_filters(c, query, filter_rules)
    ]
    # sorted() is stable, so equal priorities keep their upstream order
    scored = sorted(scored, key=lambda pair: pair[0], reverse=True)

    seen: set[str] = set()
    out: List[CitySuggestion] = []
    for _priority, candidate in scored:
        key = dedupe_key(candidate)
        if key in seen:
            continue
        seen.add(key)
        out.append(
            CitySuggestion(
                name=candidate.name,
                country=candidate.country,
                state=candidate.state,
                lat=candidate.lat,
                lon=candidate.lon,
            )
        )
        if len(out) >= limit:
            break

    logger.debug(f"Ranked {len(candidates)} candidates into {len(out)} suggestions for '{query}'")
    return out
