"""Map provider place-type tags onto the internal cuisine taxonomy.

Classification runs in two passes over the tags, both in input order:
an exact lookup in ``TAG_TO_CUISINE`` first, then substring keyword
rules. The first hit wins; otherwise ``DEFAULT_CATEGORY`` is returned.
"""

from collections.abc import Sequence

DEFAULT_CATEGORY = "american"

# Provider place type → cuisine
TAG_TO_CUISINE: dict[str, str] = {
    "mexican_restaurant": "mexican",
    "italian_restaurant": "italian",
    "chinese_restaurant": "chinese",
    "japanese_restaurant": "japanese",
    "sushi_restaurant": "japanese",
    "ramen_restaurant": "japanese",
    "thai_restaurant": "thai",
    "indian_restaurant": "indian",
    "french_restaurant": "french",
    "mediterranean_restaurant": "mediterranean",
    "middle_eastern_restaurant": "middle eastern",
    "seafood_restaurant": "seafood",
    "steakhouse": "steakhouse",
    "american_restaurant": "american",
    "pizza_restaurant": "pizza",
    "barbecue_restaurant": "bbq",
    "cafe": "coffee",
    "coffee": "coffee",
    "breakfast_restaurant": "breakfast",
    "brunch_restaurant": "brunch",
    "fast_food_restaurant": "fast food",
    "korean_restaurant": "korean",
    "vietnamese_restaurant": "vietnamese",
    "greek_restaurant": "greek",
    "spanish_restaurant": "spanish",
    "tapas_restaurant": "spanish",
    "turkish_restaurant": "turkish",
    "portuguese_restaurant": "portuguese",
    "brazilian_restaurant": "brazilian",
}

# Ordered: earlier rules win when a tag matches several
KEYWORD_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("mexican",), "mexican"),
    (("italian",), "italian"),
    (("chinese",), "chinese"),
    (("japanese", "sushi"), "japanese"),
    (("thai",), "thai"),
    (("indian",), "indian"),
    (("french",), "french"),
    (("mediterranean",), "mediterranean"),
    (("seafood",), "seafood"),
    (("steak",), "steakhouse"),
    (("bbq", "barbecue"), "bbq"),
    (("pizza",), "pizza"),
    (("coffee", "cafe"), "coffee"),
    (("korean",), "korean"),
    (("vietnamese",), "vietnamese"),
    (("greek",), "greek"),
    (("spanish", "tapas"), "spanish"),
    (("turkish",), "turkish"),
    (("portuguese",), "portuguese"),
    (("brazilian",), "brazilian"),
)


def _match_keywords(tag: str) -> str | None:
    for keywords, cuisine in KEYWORD_RULES:
        if any(keyword in tag for keyword in keywords):
            return cuisine
    return None


def classify(tags: Sequence[str] | None) -> str:
    """Classify a place's provider tags as a single cuisine.

    Args:
        tags: Provider place-type tags, most specific first.

    Returns:
        The internal cuisine value, or ``DEFAULT_CATEGORY`` if nothing matches.
    """
    if not tags:
        return DEFAULT_CATEGORY

    lowered = [tag.lower() for tag in tags]

    for tag in lowered:
        cuisine = TAG_TO_CUISINE.get(tag)
        if cuisine is not None:
            return cuisine

    for tag in lowered:
        cuisine = _match_keywords(tag)
        if cuisine is not None:
            return cuisine

    return DEFAULT_CATEGORY
