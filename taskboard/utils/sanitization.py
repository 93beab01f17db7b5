import re

TAG_RE = re.compile(r"<[^>]*>")


def sanitize_text(value):
    """Strip HTML tags and surrounding whitespace; non-strings pass through."""
    if not isinstance(value, str):
        return value
    return TAG_RE.sub("", value).strip()


def strip_text(value):
    if not isinstance(value, str):
        return value
    return value.strip()
