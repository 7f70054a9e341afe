"""Emoji checks for goal icons."""
import unicodedata

ZERO_WIDTH_JOINER = "\u200d"
KEYCAP = "\u20e3"

# Symbols plus the modifiers, selectors and tags that decorate them
_EMOJI_CATEGORIES = {"So", "Sk", "Mn", "Me", "Cf"}
# Characters that continue the current emoji instead of starting a new one
_CONTINUATION_CATEGORIES = {"Sk", "Mn", "Me", "Cf"}

# Pictographic code points that may start an emoji. Other "So" symbols such
# as the copyright or degree sign are plain text.
_PICTOGRAPHIC_RANGES = (
    (0x2139, 0x2139),
    (0x2194, 0x2199),
    (0x21A9, 0x21AA),
    (0x231A, 0x231B),
    (0x2328, 0x2328),
    (0x23CF, 0x23CF),
    (0x23E9, 0x23F3),
    (0x23F8, 0x23FA),
    (0x24C2, 0x24C2),
    (0x25AA, 0x25AB),
    (0x25B6, 0x25B6),
    (0x25C0, 0x25C0),
    (0x25FB, 0x25FE),
    (0x2600, 0x27BF),
    (0x2934, 0x2935),
    (0x2B05, 0x2B07),
    (0x2B1B, 0x2B1C),
    (0x2B50, 0x2B50),
    (0x2B55, 0x2B55),
    (0x3030, 0x3030),
    (0x303D, 0x303D),
    (0x3297, 0x3297),
    (0x3299, 0x3299),
    (0x1F000, 0x1FAFF),
)


def _is_pictographic(char: str) -> bool:
    code = ord(char)
    return any(low <= code <= high for low, high in _PICTOGRAPHIC_RANGES)


def _is_regional_indicator(char: str) -> bool:
    return 0x1F1E6 <= ord(char) <= 0x1F1FF


def _is_keycap_base(char: str) -> bool:
    return char.isdigit() or char in "#*"


def count_emoji(text: str) -> int:
    """
    Count emoji clusters in text, or return -1 if text holds anything else.

    Handles ZWJ sequences, skin-tone modifiers, variation selectors, flags
    (regional indicator pairs), tag sequences and keycaps.

    Examples:
        >>> count_emoji("🏃")
        1
        >>> count_emoji("👩\u200d💻")
        1
        >>> count_emoji("🇵🇱")
        1
        >>> count_emoji("🏃📚")
        2
        >>> count_emoji("run")
        -1
    """
    clusters = 0
    previous = ""
    open_flag = False

    for index, char in enumerate(text):
        category = unicodedata.category(char)

        if _is_keycap_base(char):
            # Only valid as the base of a keycap sequence like "1️⃣"
            if KEYCAP not in text[index + 1:index + 3]:
                return -1
            clusters += 1
        elif category not in _EMOJI_CATEGORIES:
            return -1
        elif category == "So" and not _is_pictographic(char):
            return -1
        elif category in _CONTINUATION_CATEGORIES:
            if not previous:
                return -1
        elif previous == ZERO_WIDTH_JOINER:
            pass
        elif _is_regional_indicator(char):
            if open_flag:
                open_flag = False
            else:
                open_flag = True
                clusters += 1
        else:
            clusters += 1

        if not _is_regional_indicator(char):
            open_flag = False
        previous = char

    return clusters


def is_single_emoji(text: str) -> bool:
    """True when text is exactly one emoji (possibly a multi-codepoint one)."""
    if not text or text != text.strip():
        return False
    return count_emoji(text) == 1
