"""
Quantity resolution for spoken and typed quantities.
Handles digit strings and number words up to fifty, including compound
words written either hyphenated ("twenty-one") or spaced ("twenty one").
"""

from typing import Dict, List, Optional, Tuple

from config import Config
from vocabulary import TENS_WORDS, UNIT_WORDS


def _build_number_words(max_value: int) -> Dict[str, int]:
    table: Dict[str, int] = {word: value for value, word in enumerate(UNIT_WORDS)}
    for tens_word, tens_value in TENS_WORDS.items():
        table[tens_word] = tens_value
        for unit_value in range(1, 10):
            value = tens_value + unit_value
            if value > max_value:
                break
            unit_word = UNIT_WORDS[unit_value]
            # Recognizers emit both forms
            table[f"{tens_word}-{unit_word}"] = value
            table[f"{tens_word} {unit_word}"] = value
    return table


# Built once per process
NUMBER_WORDS: Dict[str, int] = _build_number_words(Config.MAX_QUANTITY_WORD)


def parse_quantity(token: str) -> Optional[int]:
    """
    Resolve a quantity token to an integer.
    Returns None when the token is not a quantity.
    """
    if token is None:
        return None
    candidate = token.strip().lower()
    if not candidate:
        return None
    # ASCII only; "²" passes isdigit() but not int()
    if candidate.isascii() and candidate.isdecimal():
        return int(candidate)
    return NUMBER_WORDS.get(candidate)


def read_quantity(tokens: List[str], index: int) -> Tuple[Optional[int], int]:
    """
    Read a quantity starting at tokens[index].

    Tries the two-token spaced compound first ("twenty one") so it is not
    split into 20 followed by 1.
    Returns: (quantity or None, index of the first unconsumed token)
    """
    if index >= len(tokens):
        return None, index

    if index + 1 < len(tokens):
        pair = f"{tokens[index]} {tokens[index + 1]}"
        value = NUMBER_WORDS.get(pair)
        if value is not None:
            return value, index + 2

    value = parse_quantity(tokens[index])
    if value is not None:
        return value, index + 1
    return None, index
