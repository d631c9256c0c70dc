"""
Transcript scenarios for evaluating the voice kiosk.
Each scenario starts from an empty, listening session, feeds transcripts in
order and lists the cart it should end with (item id -> quantity).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class TranscriptScenario:
    """A scripted utterance sequence and its expected cart."""
    id: str
    description: str
    transcripts: List[str]
    expected_cart: Dict[str, int] = field(default_factory=dict)
    expected_status: Optional[str] = None


SCENARIOS = [
    TranscriptScenario(
        id="multi_item_digits",
        description="Two quantity-led items in one run-on utterance",
        transcripts=["2 idli 3 mango lassi"],
        expected_cart={"7": 2, "11": 3},
    ),
    TranscriptScenario(
        id="number_words",
        description="Spelled-out quantities",
        transcripts=["i want two samosa and three naan please"],
        expected_cart={"5": 2, "12": 3},
    ),
    TranscriptScenario(
        id="compound_number_word",
        description="Hyphenated and spaced compound numbers",
        transcripts=["twenty-one naan", "twenty one samosa"],
        expected_cart={"12": 21, "5": 21},
    ),
    TranscriptScenario(
        id="bare_item",
        description="Naming a dish with no quantity adds one",
        transcripts=["masala dosa"],
        expected_cart={"2": 1},
    ),
    TranscriptScenario(
        id="misspelled_item",
        description="Recognizer misspelling resolved by fuzzy matching",
        transcripts=["buter chiken"],
        expected_cart={"3": 1},
    ),
    TranscriptScenario(
        id="unknown_item",
        description="Unknown dish leaves the cart unchanged",
        transcripts=["xyzfood"],
        expected_cart={},
        expected_status='Item "xyzfood" not found in menu.',
    ),
    TranscriptScenario(
        id="partial_remove",
        description="Remove with a quantity decrements the entry",
        transcripts=["3 gulab jamun", "remove 1 gulab jamun"],
        expected_cart={"10": 2},
    ),
    TranscriptScenario(
        id="full_remove",
        description="Remove without a quantity deletes the entry",
        transcripts=["2 mango lassi", "remove mango lassi"],
        expected_cart={},
    ),
    TranscriptScenario(
        id="over_remove",
        description="Removing more than is in the cart clamps to zero",
        transcripts=["1 naan", "remove 5 naan"],
        expected_cart={},
    ),
    TranscriptScenario(
        id="merge_adds",
        description="Repeated adds merge into one entry",
        transcripts=["add 2 dal tadka", "add dal tadka"],
        expected_cart={"9": 3},
    ),
    TranscriptScenario(
        id="reset",
        description="Reset empties the cart",
        transcripts=["2 veg biryani and 1 samosa", "clear cart"],
        expected_cart={},
    ),
    TranscriptScenario(
        id="navigation_not_an_item",
        description="Navigation phrases are not read as dishes",
        transcripts=["1 chole bhature and go to cart", "add more"],
        expected_cart={"6": 1},
    ),
    TranscriptScenario(
        id="remove_carry_over",
        description="A remove verb applies to each item in the sentence",
        transcripts=["2 naan, 2 samosa and 1 paneer tikka", "remove naan and samosa"],
        expected_cart={"1": 1},
    ),
    TranscriptScenario(
        id="stop_mid_utterance",
        description="Operations after stop recording are not honored",
        transcripts=["1 chicken tikka stop recording 2 naan"],
        expected_cart={"8": 1},
    ),
    TranscriptScenario(
        id="sentences",
        description="Sentence punctuation separates clauses",
        transcripts=["Can I get 2 masala dosa. Also one mango lassi! Thanks"],
        expected_cart={"2": 2, "11": 1},
    ),
]


def get_all_scenarios() -> List[TranscriptScenario]:
    return list(SCENARIOS)


def get_scenario(scenario_id: str) -> Optional[TranscriptScenario]:
    for scenario in SCENARIOS:
        if scenario.id == scenario_id:
            return scenario
    return None
