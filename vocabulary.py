"""
Phrase and word tables for the transcript interpreter and the quantity parser.
"""

from typing import Dict, FrozenSet, List, Tuple


# Lead-in phrases stripped once from the start of a transcript
FILLER_PREFIXES: List[str] = [
    "i would like",
    "i'll have",
    "can i get",
    "let me have",
    "give me",
    "i want",
    "i need",
]

# Politeness stripped once from the end of a transcript
FILLER_SUFFIXES: List[str] = [
    "thank you",
    "thanks",
    "please",
]

# Command kinds, matched by word-bounded containment
START_CAPTURE = "start_capture"
STOP_CAPTURE = "stop_capture"
NAVIGATE_TO_CART = "navigate_to_cart"
NAVIGATE_TO_MENU = "navigate_to_menu"
RESET = "reset"

COMMAND_PHRASES: Dict[str, List[str]] = {
    START_CAPTURE: ["start recording", "begin recording", "start listening"],
    STOP_CAPTURE: ["stop recording", "end recording", "stop listening"],
    NAVIGATE_TO_CART: ["go to cart", "show cart", "view cart", "see my cart"],
    NAVIGATE_TO_MENU: [
        "add more", "back to menu", "continue shopping", "add items",
        "order more", "more items", "continue ordering",
    ],
    RESET: ["reset", "clear cart", "empty cart", "start over"],
}


def command_phrase_table() -> List[Tuple[str, str]]:
    """(phrase, command) pairs, longest phrase first so overlaps resolve to the fuller phrase."""
    pairs = [
        (phrase, command)
        for command, phrases in COMMAND_PHRASES.items()
        for phrase in phrases
    ]
    return sorted(pairs, key=lambda pair: len(pair[0]), reverse=True)


ADD_KEYWORDS: FrozenSet[str] = frozenset({"add"})
REMOVE_KEYWORDS: FrozenSet[str] = frozenset({"remove", "delete"})

# Sentence separators and secondary (same-sentence) separators
SENTENCE_SEPARATOR = r"[.!?]+"
CLAUSE_SEPARATOR = r"\s+and\s+|\s*,\s*|\s+also\s+"

# Words that terminate an item-name fragment
STOP_WORDS: FrozenSet[str] = frozenset({
    # conjunctions
    "and", "or", "but", "also", "then", "plus",
    # pronouns
    "i", "me", "my", "you", "we", "us", "it", "that", "this", "these", "those",
    # articles and determiners
    "a", "an", "the", "some", "more", "all",
    # portion words
    "order", "orders", "plate", "plates", "piece", "pieces",
    # verb particles
    "to", "of", "for", "please", "want", "need", "like", "would", "get",
    "have", "give", "take", "can", "could", "let", "i'll", "i'd", "is", "be",
    # command keywords
    "add", "remove", "delete", "cart", "menu", "recording", "listening",
    "reset", "start", "stop", "go", "show", "view", "see",
    # hesitation and acknowledgement
    "um", "uh", "hmm", "okay", "ok", "yes", "yeah", "so", "just", "too",
    "thanks", "thank",
})

# Stop-words that may sit between a quantity and the item name ("2 more naan")
LEADING_FILLERS: FrozenSet[str] = frozenset({
    "a", "an", "the", "some", "more", "all", "of", "my", "order", "orders",
    "plate", "plates", "piece", "pieces",
})

UNIT_WORDS: List[str] = [
    "zero", "one", "two", "three", "four", "five", "six", "seven", "eight",
    "nine", "ten", "eleven", "twelve", "thirteen", "fourteen", "fifteen",
    "sixteen", "seventeen", "eighteen", "nineteen",
]

TENS_WORDS: Dict[str, int] = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}
