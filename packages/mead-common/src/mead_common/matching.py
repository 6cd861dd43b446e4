"""
Fuzzy string matching utilities for fermentable ingredient names.

Uses RapidFuzz to resolve free-text names ("tart cherries", "maple")
to catalog identifiers and to suggest close matches for typos.
Scores are RapidFuzz's token_sort_ratio scaled to 0..1, so word order
does not matter: "tart cherry" matches "Cherry (tart)" exactly.
"""

from collections.abc import Mapping
from typing import Callable, TypeVar

from rapidfuzz import fuzz, process
from rapidfuzz.utils import default_process


T = TypeVar("T")


def _extract(
    query: str,
    choices: list[str] | Mapping[int, str],
    threshold: float,
    limit: int,
) -> list[tuple[str, float, int]]:
    if not choices or not query or not query.strip():
        return []
    results = process.extract(
        query,
        choices,
        scorer=fuzz.token_sort_ratio,
        processor=default_process,
        limit=limit,
    )
    return [
        (match, score / 100, key)
        for match, score, key in results
        if score / 100 >= threshold
    ]


def match_string(
    query: str,
    candidates: list[str],
    threshold: float = 0.7,
    limit: int = 5,
) -> list[tuple[str, float]]:
    """
    (candidate, confidence) pairs scoring at least `threshold`, best first.

        >>> match_string("strawbery", ["strawberry", "raspberry", "blueberry"])
        [("strawberry", 0.95)]
    """
    return [(match, score) for match, score, _ in _extract(query, candidates, threshold, limit)]


def match_objects(
    query: str,
    candidates: list[T],
    key: Callable[[T], str],
    threshold: float = 0.7,
    limit: int = 5,
) -> list[tuple[T, float]]:
    """Like match_string, but scores each object by the string `key` returns."""
    choices = {i: key(obj) for i, obj in enumerate(candidates)}
    return [(candidates[i], score) for _, score, i in _extract(query, choices, threshold, limit)]


def best_match(
    query: str,
    candidates: list[str],
    threshold: float = 0.7,
) -> tuple[str, float] | None:
    matches = match_string(query, candidates, threshold, limit=1)
    return matches[0] if matches else None


# Free-text names people use for catalog ingredients
INGREDIENT_ALIASES: dict[str, list[str]] = {
    "honey": ["raw honey", "wildflower honey", "clover honey", "orange blossom honey"],
    "apple": ["apples", "fresh apple", "apple (fresh)"],
    "apple-juice": ["apple juice", "cider", "fresh cider"],
    "blackberry": ["blackberries"],
    "blueberry": ["blueberries"],
    "cherry": ["cherries", "sweet cherry", "sweet cherries", "cherry (sweet)"],
    "cherry-tart": ["tart cherry", "tart cherries", "sour cherry", "cherry (tart)"],
    "cranberry": ["cranberries"],
    "grape": ["grapes", "fresh grape", "grape (fresh)"],
    "grape-juice": ["grape juice", "must"],
    "orange": ["oranges"],
    "orange-juice": ["orange juice", "oj"],
    "peach": ["peaches"],
    "pear": ["pears"],
    "raspberry": ["raspberries"],
    "strawberry": ["strawberries"],
    "elderberry": ["elderberries"],
    "elderflower": ["elderflowers", "elder flower"],
    "cane-sugar": ["cane sugar", "sugar", "table sugar", "white sugar", "sucrose"],
    "brown-sugar": ["brown sugar", "demerara"],
    "maple-syrup": ["maple syrup", "maple"],
    "agave": ["agave nectar", "agave syrup"],
}


def normalise_ingredient_name(name: str) -> str:
    """
    Normalise an ingredient name to a canonical catalog id.

    Example:
        >>> normalise_ingredient_name("Tart Cherries")
        "cherry-tart"
        >>> normalise_ingredient_name("Maple Syrup")
        "maple-syrup"
    """
    name_lower = name.lower().strip()

    if name_lower in INGREDIENT_ALIASES:
        return name_lower

    for canonical, aliases in INGREDIENT_ALIASES.items():
        if name_lower in aliases:
            return canonical

    # Unknown names fall back to slug form ("Cane Sugar" -> "cane-sugar")
    return "-".join(name_lower.split())


def find_canonical_name(
    name: str,
    threshold: float = 0.85,
) -> str | None:
    """Fuzzy-match a name against canonical ids and aliases; None if nothing is close."""
    lookup: dict[str, str] = {}
    for canonical, aliases in INGREDIENT_ALIASES.items():
        lookup[canonical] = canonical
        for alias in aliases:
            lookup[alias] = canonical

    match = best_match(name, list(lookup.keys()), threshold)
    if match is None:
        return None
    return lookup[match[0]]
