import re
import unicodedata

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """
    Lower-case, accent-free, dash-separated form of `value`.

    "Mr. Mime" -> "mr-mime", "Flabébé" -> "flabebe". Returns "" when nothing
    URL-safe is left.
    """
    if not value:
        return ""
    s = unicodedata.normalize("NFKD", value.strip().lower())
    s = "".join(c for c in s if not unicodedata.combining(c))
    s = s.replace("'", "").replace("’", "")
    return _NON_SLUG_CHARS.sub("-", s).strip("-")


def normalize_color(color: str | None) -> str | None:
    """Store colours upper-case with a leading '#': 'ff0000' -> '#FF0000'."""
    if not color:
        return None
    color = color.upper()
    return color if color.startswith("#") else f"#{color}"


def dedupe(values):
    """Drop repeated items, keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result
