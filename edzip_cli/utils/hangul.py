"""
Hangul initial-consonant (chosung) helpers based on plain Unicode arithmetic.
"""

import unicodedata

_HANGUL_BASE = 0xAC00  # '가'
_HANGUL_END = 0xD7A3  # '힣'

# Vowel (jungseong) and final (jongseong) counts per initial block
_JUNGSUNG_COUNT = 21
_JONGSUNG_COUNT = 28

# The 19 leading consonants, in Unicode syllable order
CHOSUNG = (
    "ㄱ", "ㄲ", "ㄴ", "ㄷ", "ㄸ", "ㄹ", "ㅁ", "ㅂ", "ㅃ", "ㅅ",
    "ㅆ", "ㅇ", "ㅈ", "ㅉ", "ㅊ", "ㅋ", "ㅌ", "ㅍ", "ㅎ",
)  # fmt: skip

_CHOSUNG_SET = frozenset(CHOSUNG)


def extract_chosung(text: str) -> str:
    """
    Returns the leading consonants of every Hangul syllable in `text`, in order.

    Standalone initial jamo already present in the text are kept; every other
    character (vowels, finals, Latin, digits, spaces) is dropped.

    >>> extract_chosung("안양초")
    'ㅇㅇㅊ'
    >>> extract_chosung("2024 체크리스트")
    'ㅊㅋㄹㅅㅌ'
    """
    result: list[str] = []
    for ch in unicodedata.normalize("NFC", text or ""):
        code = ord(ch)
        if _HANGUL_BASE <= code <= _HANGUL_END:
            idx = (code - _HANGUL_BASE) // (_JUNGSUNG_COUNT * _JONGSUNG_COUNT)
            result.append(CHOSUNG[idx])
        elif ch in _CHOSUNG_SET:
            result.append(ch)
    return "".join(result)


def is_chosung_only(text: str) -> bool:
    """
    True when `text` is non-empty and made up solely of leading consonants.

    >>> is_chosung_only("ㅇㅊ")
    True
    >>> is_chosung_only("ㅇ초")
    False
    """
    return bool(text) and all(ch in _CHOSUNG_SET for ch in text)
