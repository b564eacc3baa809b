import re
import time
import unicodedata
import uuid

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(label: str) -> str:
    """Turn a free-text label into a Firestore-safe key.

    "Water Line Test" -> "water-line-test", "Étuve" -> "etuve".
    May return "" for labels made only of symbols or emoji.
    """
    text = unicodedata.normalize("NFKD", (label or "").strip().lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("-", text).strip("-")


def derive_key(label: str, prefix: str = "key") -> str:
    """Deterministic key for a label, or a time-based synthetic key if it slugs to ''.

    Collisions between equal labels are left to the caller.
    """
    slug = slugify(label)
    if slug:
        return slug
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"
