"""
Metadata Extraction for Matching.

Responsibilities:
- Derive coarse tags (labels, color profile, object type) from an item's
  image reference and, optionally, its text.
- Backfill tags on items that have none.

Non-Responsibilities:
- No image download or decoding.
- No computer vision. This is a keyword lookup standing in for real
  image understanding; it only sees the characters of the reference
  (file names, URL slugs) and the words of the report.

Invariant:
extract_metadata is pure and total. Unrecognized input yields the
generic fallback tags, never an exception.
"""

from typing import Callable, FrozenSet, NamedTuple, Optional

from lostfound.logger import get_logger
from lostfound.models import ItemRecord


class ImageMetadata(NamedTuple):
    labels: FrozenSet[str]
    color_profile: str
    object_type: str


FALLBACK_LABELS = frozenset({"item", "object", "lost-found"})
FALLBACK_COLOR_PROFILE = "unknown"
FALLBACK_OBJECT_TYPE = "item"
NO_COLOR_MATCH = "mixed"

FALLBACK_METADATA = ImageMetadata(FALLBACK_LABELS, FALLBACK_COLOR_PROFILE, FALLBACK_OBJECT_TYPE)

# Tags that say nothing about the item; skipped when ScoringWeights.ignore_generic_tags is set
NON_INFORMATIVE_OBJECT_TYPES = frozenset({FALLBACK_OBJECT_TYPE})
NON_INFORMATIVE_COLOR_PROFILES = frozenset({FALLBACK_COLOR_PROFILE, NO_COLOR_MATCH})

# (object_type, group labels, keywords); earlier rows win the object type
OBJECT_TYPE_TABLE = (
    ("animal", ("animal", "pet"), (
        "cat", "kitten", "tabby", "dog", "puppy", "bird", "parrot", "rabbit", "hamster",
    )),
    ("electronics", ("electronics", "device"), (
        "phone", "laptop", "tablet", "ipad", "macbook", "camera", "charger",
        "earbud", "airpod", "smartwatch", "kindle", "console",
    )),
    ("keys", ("keys",), (
        "keys", "keychain", "keyring", "key ring", "key fob", "car key", "house key",
    )),
    ("documents", ("documents", "paper"), (
        "passport", "licence", "license", "id card", "document", "ticket", "certificate",
    )),
    ("bag", ("bag", "container"), (
        "backpack", "handbag", "suitcase", "luggage", "purse", "tote", "bag",
    )),
    ("personal", ("personal", "accessory"), (
        "wallet", "sunglasses", "glasses", "umbrella", "watch", "jewel", "necklace",
        "bracelet", "earring",
    )),
    ("clothing", ("clothing", "apparel"), (
        "jacket", "coat", "sweater", "hoodie", "shirt", "scarf", "glove", "shoe",
        "sneaker", "boot", "hat",
    )),
)

# (color_profile, keywords); first bucket with a hit wins
COLOR_TABLE = (
    ("dark", ("black", "navy", "charcoal", "dark", "grey", "gray")),
    ("light", ("white", "cream", "ivory", "silver", "light", "pale")),
    ("cool", ("blue", "green", "purple", "teal", "turquoise", "violet", "cyan")),
    ("warm", ("red", "orange", "yellow", "pink", "gold", "maroon", "coral")),
    ("natural", ("brown", "tan", "beige", "khaki", "wood", "leather", "olive")),
)


def _searchable_ref(image_ref: str) -> str:
    """Lowercased reference text; inline data URIs keep only their header."""
    ref = (image_ref or "").strip().lower()
    if ref.startswith("data:"):
        return ref.split(",", 1)[0]
    return ref


def _word_text(text: str) -> str:
    # Padding lets " keyword " match any whole word or phrase
    words = "".join(ch if ch.isalnum() else " " for ch in (text or "").lower())
    return " " + " ".join(words.split()) + " "


PLURAL_SUFFIXES = ("", "s", "es")


def _hit(keyword: str, ref: str, words: str) -> bool:
    # References are slugs, so plain substrings; prose needs whole words or plurals
    if keyword in ref:
        return True
    return any(f" {keyword}{suffix} " in words for suffix in PLURAL_SUFFIXES)


def extract_metadata(image_ref: str, text: str = "") -> ImageMetadata:
    """
    Map an image reference (and optional report text) to coarse tags.

    Labels accumulate across every keyword group that matches, together
    with the matched keywords themselves. The object type and color
    profile each take the first matching row of their table. When
    nothing matches at all the generic fallback is returned.
    """
    ref = _searchable_ref(image_ref)
    words = _word_text(text)

    labels = set()
    object_type: Optional[str] = None
    for group_type, group_labels, keywords in OBJECT_TYPE_TABLE:
        matched = [kw for kw in keywords if _hit(kw, ref, words)]
        if not matched:
            continue
        labels.update(group_labels)
        labels.update(matched)
        if object_type is None:
            object_type = group_type

    color_profile: Optional[str] = None
    for bucket, keywords in COLOR_TABLE:
        matched = [kw for kw in keywords if _hit(kw, ref, words)]
        if matched:
            labels.update(matched)
            if color_profile is None:
                color_profile = bucket

    if not labels:
        return FALLBACK_METADATA

    return ImageMetadata(
        labels=frozenset(labels),
        color_profile=color_profile or NO_COLOR_MATCH,
        object_type=object_type or FALLBACK_OBJECT_TYPE,
    )


def tag_item(
    item: ItemRecord,
    extractor: Callable[..., ImageMetadata] = extract_metadata,
    force: bool = False,
) -> ItemRecord:
    """
    Return a copy of the item carrying derived tags.

    Items that already have tags are returned unchanged unless force is
    set. A failing extractor degrades to the generic fallback tags; the
    failure is logged and never propagated.
    """
    if item.is_tagged and not force:
        return item

    logger = get_logger()
    try:
        metadata = extractor(item.image_ref, f"{item.title} {item.description}")
    except Exception as e:
        logger.warning(
            "Tagging failed, using generic tags",
            item_id=item.id,
            error_type=type(e).__name__,
            error=str(e),
        )
        logger.record_error(type(e).__name__)
        metadata = FALLBACK_METADATA

    logger.record_tagging(fallback=metadata == FALLBACK_METADATA)
    logger.debug(
        "Tagged item",
        item_id=item.id,
        object_type=metadata.object_type,
        color_profile=metadata.color_profile,
        labels=sorted(metadata.labels),
    )
    return item.with_tags(metadata.labels, metadata.color_profile, metadata.object_type)
