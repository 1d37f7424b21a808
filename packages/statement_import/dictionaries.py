"""Static merchant and keyword dictionaries used after user rules.

Both are ordered ``(substring, category_name)`` pairs. Lookup walks them in
declaration order and stops at the first substring found, so earlier entries
take priority (``"home depot"`` must precede anything that would also match
a Home Depot merchant string). Category names are resolved to stored
category ids by case-insensitive name at lookup time.

This is a minimal baseline. Extend it by passing a longer tuple to
:class:`statement_import.categorization.Categorizer`, e.g.
``MERCHANT_DICTIONARY + (("trader joe", "groceries"),)``.
"""

from __future__ import annotations

type Dictionary = tuple[tuple[str, str], ...]

MERCHANT_DICTIONARY: Dictionary = (
    ("starbucks", "coffee"),
    ("mcdonalds", "fast-food"),
    ("uber", "transportation"),
    ("lyft", "transportation"),
    ("amazon", "shopping"),
    ("walmart", "groceries"),
    ("target", "shopping"),
    ("netflix", "entertainment"),
    ("spotify", "entertainment"),
    ("gym", "health"),
    ("doctor", "health"),
    ("dentist", "health"),
    ("gas", "transportation"),
    ("shell", "transportation"),
    ("exxon", "transportation"),
    ("home depot", "home-improvement"),
    ("lowes", "home-improvement"),
    ("restaurant", "dining"),
    ("pizza", "dining"),
    ("coffee", "dining"),
)

KEYWORD_DICTIONARY: Dictionary = (
    ("groceries", "groceries"),
    ("food", "groceries"),
    ("restaurant", "dining"),
    ("coffee", "dining"),
    ("gas", "transportation"),
    ("fuel", "transportation"),
    ("uber", "transportation"),
    ("lyft", "transportation"),
    ("netflix", "entertainment"),
    ("spotify", "entertainment"),
    ("gym", "health"),
    ("doctor", "health"),
    ("medical", "health"),
    ("insurance", "insurance"),
    ("rent", "housing"),
    ("mortgage", "housing"),
    ("utilities", "utilities"),
    ("electric", "utilities"),
    ("water", "utilities"),
    ("internet", "utilities"),
    ("phone", "utilities"),
    ("shopping", "shopping"),
    ("amazon", "shopping"),
    ("clothing", "shopping"),
    ("entertainment", "entertainment"),
    ("movie", "entertainment"),
    ("travel", "travel"),
    ("hotel", "travel"),
    ("flight", "travel"),
    ("education", "education"),
    ("school", "education"),
    ("tuition", "education"),
    ("investment", "investments"),
    ("savings", "savings"),
    ("transfer", "transfer"),
)


def lookup(text: str | None, dictionary: Dictionary) -> str | None:
    """Return the category name of the first entry whose substring is in ``text``."""

    if not text:
        return None
    lowered = text.lower()
    for substring, category_name in dictionary:
        if substring in lowered:
            return category_name
    return None


def category_names(*dictionaries: Dictionary) -> tuple[str, ...]:
    """Distinct category names across ``dictionaries``, first-seen order."""

    seen: dict[str, None] = {}
    for d in dictionaries:
        for _, name in d:
            seen.setdefault(name, None)
    return tuple(seen)


__all__ = [
    "Dictionary",
    "MERCHANT_DICTIONARY",
    "KEYWORD_DICTIONARY",
    "lookup",
    "category_names",
]
