import re

_NON_PRICE_CHARS = re.compile(r"[^0-9.]")

def extract_price(text: str) -> str:
    """
    Keep only digits and dots from a free-form model reply.
    "$45.00 approximately" -> "45.00"; nothing left -> "0".
    """
    return _NON_PRICE_CHARS.sub("", text) or "0"

def stable_fraction(text: str) -> float:
    """Same text, same number in [0, 1). FNV-1a over the UTF-8 bytes."""
    h = 0x811c9dc5
    for byte in text.encode("utf-8"):
        h = ((h ^ byte) * 0x01000193) & 0xFFFFFFFF
    return h / 2**32
