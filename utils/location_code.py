"""
Short location codes shown in front of studio numbers, e.g. "GTC-12"
"""
import re
from typing import Optional

# Filler words that do not contribute an initial
SKIP_WORDS = {"OF", "THE", "AND", "AT", "IN", "ON"}

MAX_CODE_LENGTH = 3


def generate_location_code(name: Optional[str]) -> Optional[str]:
    """
    Derive a 1-3 letter code from a location name.

    "Garden Town Cantt Multan" -> "GTC", "City Center" -> "CC",
    "Mall of Multan" -> "MM", "Lahore" -> "LAH".
    """
    if not name or not isinstance(name, str):
        return None

    words = [w for w in re.split(r'\s+', name.strip().upper()) if w]
    if not words:
        return None

    if len(words) == 1:
        return words[0][:MAX_CODE_LENGTH]

    code = "".join(w[0] for w in words if w not in SKIP_WORDS)[:MAX_CODE_LENGTH]
    if not code:
        # Every word was a filler word
        return "".join(w[0] for w in words)[:MAX_CODE_LENGTH]
    return code


def format_studio_number(studio_number: Optional[int], code: Optional[str]) -> Optional[str]:
    if studio_number is None:
        return None
    return f"{code}-{studio_number}" if code else f"{studio_number}"
