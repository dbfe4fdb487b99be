import re

UNKNOWN_NAME = "unknown"

# Display names keep readable substitutes; folder and file names get "_".
DISPLAY_TABLE: dict[str, str] = {
    "<": "",
    ">": "",
    ":": " -",
    '"': "'",
    "|": "-",
    "?": "",
    "*": "",
    "/": "-",
    "\\": "-",
}

_STRICT_INVALID = re.compile(r'[\x00-\x1f/\\:?*"<>|]')
_TRAVERSAL = re.compile(r"(?:^|[\\/])\.\.(?:[\\/]|$)")


def apply_display_table(name: str) -> str:
    for ch, sub in DISPLAY_TABLE.items():
        name = name.replace(ch, sub)
    return name


def sanitize_display(name: str) -> str:
    if not name or not name.strip():
        return UNKNOWN_NAME
    return apply_display_table(name)


def sanitize_segment(name: str) -> str:
    if not name or not name.strip():
        return UNKNOWN_NAME
    return _STRICT_INVALID.sub("_", name)


def has_invalid_chars(name: str) -> bool:
    return any(ch in name for ch in DISPLAY_TABLE)


def contains_traversal(raw: str) -> bool:
    return bool(_TRAVERSAL.search(raw or ""))
