import re
import unicodedata

MAX_SLUG_LENGTH = 63


def normalize_slug(value: str) -> str:
    """Lowercase ASCII slug usable as a storefront subdomain label.

    ``"Villa Serenity, Lonavala"`` becomes ``"villa-serenity-lonavala"``.
    """
    if not value:
        return ""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii").lower()
    value = re.sub(r"[^a-z0-9]+", "-", value).strip("-")
    return value[:MAX_SLUG_LENGTH].rstrip("-")
