#!/usr/bin/env python3
"""
Transcript interpretation for voice ordering
Turns recognized speech into structured cart operations and commands
"""

import re
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from cart_engine import OperationType, ResolvedOperation
from config import Config
from menu_data import Menu
from menu_matcher import MenuMatcher
from quantity_parser import read_quantity
import vocabulary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedOperation:
    """
    One operation extracted from a transcript, before menu resolution.
    item_fragment/quantity are set for add and remove; text for unrecognized.
    """
    type: str
    item_fragment: str = ""
    quantity: Optional[int] = None
    text: str = ""

    @classmethod
    def add(cls, fragment: str, quantity: int = Config.DEFAULT_QUANTITY) -> "ParsedOperation":
        return cls(type=OperationType.ADD, item_fragment=fragment, quantity=quantity)

    @classmethod
    def remove(cls, fragment: str, quantity: Optional[int] = None) -> "ParsedOperation":
        return cls(type=OperationType.REMOVE, item_fragment=fragment, quantity=quantity)

    @classmethod
    def command(cls, operation_type: str) -> "ParsedOperation":
        return cls(type=operation_type)

    @classmethod
    def unrecognized(cls, text: str) -> "ParsedOperation":
        return cls(type=OperationType.UNRECOGNIZED, text=text)


class TranscriptNormalizer:
    """Lowercases, trims and strips lead-in and politeness phrases"""

    def __init__(self, prefixes: List[str] = None, suffixes: List[str] = None):
        prefixes = prefixes if prefixes is not None else vocabulary.FILLER_PREFIXES
        suffixes = suffixes if suffixes is not None else vocabulary.FILLER_SUFFIXES
        # Longest first so "i would like" wins over any shorter overlap
        self.prefix_patterns = [
            re.compile(r'^' + re.escape(prefix) + r'(?![\w\'])[\s,]*')
            for prefix in sorted(prefixes, key=len, reverse=True)
        ]
        self.suffix_patterns = [
            re.compile(r'(?:^|(?<=[\s,]))' + re.escape(suffix) + r'[\s.!?]*$')
            for suffix in sorted(suffixes, key=len, reverse=True)
        ]

    def normalize(self, text: str) -> str:
        if not text:
            return ""
        text = " ".join(text.lower().split())

        for pattern in self.prefix_patterns:
            stripped = pattern.sub('', text, count=1)
            if stripped != text:
                text = stripped
                break

        for pattern in self.suffix_patterns:
            stripped = pattern.sub('', text, count=1)
            if stripped != text:
                text = stripped.rstrip(' ,')
                break

        return text.strip()


@dataclass(frozen=True)
class Clause:
    """A clause and the index of the sentence it came from."""
    text: str
    sentence: int


class ClauseSplitter:
    """Splits normalized text into sentences, then into clauses on 'and', commas and 'also'"""

    def __init__(self, sentence_separator: str = vocabulary.SENTENCE_SEPARATOR,
                 clause_separator: str = vocabulary.CLAUSE_SEPARATOR):
        self.sentence_pattern = re.compile(sentence_separator)
        self.clause_pattern = re.compile(clause_separator)

    def split(self, text: str) -> List[Clause]:
        clauses = []
        sentences = [s.strip() for s in self.sentence_pattern.split(text or "")]
        for index, sentence in enumerate(s for s in sentences if s):
            for part in self.clause_pattern.split(f" {sentence} "):
                part = part.strip(" ,")
                if part:
                    clauses.append(Clause(text=part, sentence=index))
        return clauses


def tokenize(text: str) -> List[str]:
    """Split on whitespace and trim punctuation from token edges."""
    tokens = []
    for raw in text.split():
        token = re.sub(r"^[^\w]+|[^\w]+$", "", raw)
        if token:
            tokens.append(token)
    return tokens


def _is_numeric(fragment: str) -> bool:
    return fragment.replace("-", "").replace(" ", "").isdigit()


class OperationExtractor:
    """
    Extracts commands and item operations from normalized text.

    Command phrases are matched first and cut out of the clause so their
    words can't be read as item names. The remaining tokens are scanned
    left to right: "remove"/"add" set the verb, a quantity starts a new item
    fragment, and a fragment ends at the next quantity or stop-word. Words
    left over between those are treated as bare item names.
    """

    def __init__(self, splitter: ClauseSplitter = None):
        self.splitter = splitter or ClauseSplitter()
        self.phrase_patterns = [
            (re.compile(r"(?<![\w'])" + re.escape(phrase) + r"(?![\w'])"), command)
            for phrase, command in vocabulary.command_phrase_table()
        ]

    def extract(self, text: str) -> List[ParsedOperation]:
        operations: List[ParsedOperation] = []
        mode = OperationType.ADD
        previous_sentence = None

        for clause in self.splitter.split(text):
            # A remove verb carries into later clauses of the same sentence
            if clause.sentence != previous_sentence:
                mode = OperationType.ADD
            previous_sentence = clause.sentence

            clause_operations, mode = self.extract_clause(clause.text, mode)
            operations.extend(clause_operations)

        return operations

    def extract_clause(self, text: str, mode: str = OperationType.ADD) -> Tuple[List[ParsedOperation], str]:
        """Returns: (operations in spoken order, verb mode at the end of the clause)"""
        operations: List[ParsedOperation] = []
        segments, commands = self._split_commands(text)

        for index, segment in enumerate(segments):
            segment_operations, mode = self._scan(tokenize(segment), mode)
            operations.extend(segment_operations)
            if index < len(commands):
                operations.append(ParsedOperation.command(commands[index]))

        return operations, mode

    def _split_commands(self, text: str) -> Tuple[List[str], List[str]]:
        """
        Cut command phrases out of the text.
        Returns the text segments around the phrases and the commands in
        order; there is always one more segment than commands.
        """
        spans: List[Tuple[int, int, str]] = []
        for pattern, command in self.phrase_patterns:
            for match in pattern.finditer(text):
                start, end = match.span()
                if any(start < s_end and end > s_start for s_start, s_end, _ in spans):
                    continue
                spans.append((start, end, command))
        spans.sort()

        segments = []
        commands = []
        cursor = 0
        for start, end, command in spans:
            segments.append(text[cursor:start])
            commands.append(command)
            cursor = end
        segments.append(text[cursor:])
        return segments, commands

    def _scan(self, tokens: List[str], mode: str) -> Tuple[List[ParsedOperation], str]:
        operations: List[ParsedOperation] = []
        leftover: List[str] = []
        i = 0

        def flush():
            for fragment in self._bare_fragments(leftover):
                operations.append(self._item_operation(mode, fragment, None))
            leftover.clear()

        while i < len(tokens):
            token = tokens[i]

            if token in vocabulary.REMOVE_KEYWORDS or token in vocabulary.ADD_KEYWORDS:
                flush()
                mode = OperationType.REMOVE if token in vocabulary.REMOVE_KEYWORDS else OperationType.ADD
                quantity, i = read_quantity(tokens, i + 1)
                fragment, i = self._collect_fragment(tokens, self._skip_fillers(tokens, i))
                if fragment:
                    operations.append(self._item_operation(mode, fragment, quantity))
                continue

            quantity, next_index = read_quantity(tokens, i)
            if quantity is not None:
                flush()
                fragment, i = self._collect_fragment(tokens, self._skip_fillers(tokens, next_index))
                if fragment:
                    operations.append(self._item_operation(mode, fragment, quantity))
                else:
                    logger.info(f"🔢 Quantity {quantity} without an item, discarded")
                continue

            leftover.append(token)
            i += 1

        flush()
        return operations, mode

    @staticmethod
    def _item_operation(mode: str, fragment: str, quantity: Optional[int]) -> ParsedOperation:
        if mode == OperationType.REMOVE:
            return ParsedOperation.remove(fragment, quantity)
        return ParsedOperation.add(fragment, Config.DEFAULT_QUANTITY if quantity is None else quantity)

    @staticmethod
    def _skip_fillers(tokens: List[str], index: int) -> int:
        while index < len(tokens) and tokens[index] in vocabulary.LEADING_FILLERS:
            index += 1
        return index

    @staticmethod
    def _collect_fragment(tokens: List[str], index: int) -> Tuple[str, int]:
        """Greedily take item words up to the next quantity or stop-word."""
        words = []
        while index < len(tokens):
            token = tokens[index]
            if token in vocabulary.STOP_WORDS or read_quantity(tokens, index)[0] is not None:
                break
            words.append(token)
            index += 1
        return " ".join(words), index

    @staticmethod
    def _bare_fragments(tokens: List[str]) -> List[str]:
        """Runs of non-stop-words, each a candidate item name."""
        fragments = []
        run: List[str] = []
        for token in tokens + [None]:
            if token is not None and token not in vocabulary.STOP_WORDS:
                run.append(token)
                continue
            if run:
                fragment = " ".join(run)
                if not _is_numeric(fragment):
                    fragments.append(fragment)
                run = []
        return fragments


class TranscriptInterpreter:
    """Full pipeline: normalize, split, extract, then resolve items against the menu"""

    def __init__(self, menu: Menu, matcher: MenuMatcher = None,
                 normalizer: TranscriptNormalizer = None,
                 extractor: OperationExtractor = None,
                 max_length: int = Config.MAX_TRANSCRIPT_LENGTH):
        self.menu = menu
        self.matcher = matcher or MenuMatcher(menu)
        self.normalizer = normalizer or TranscriptNormalizer()
        self.extractor = extractor or OperationExtractor()
        self.max_length = max_length

    def _truncate(self, transcript: str) -> str:
        """Cap a transcript at max_length without splitting the last word."""
        if len(transcript) <= self.max_length:
            return transcript
        cut = transcript[:self.max_length]
        if not transcript[self.max_length].isspace():
            # Drop the partial trailing word, unless it is the only one
            cut = re.sub(r"\S+$", "", cut) or cut
        logger.warning(f"⚠️ Transcript truncated from {len(transcript)} to {len(cut)} characters")
        return cut

    def parse(self, transcript: str) -> List[ParsedOperation]:
        """Extract unresolved operations from a raw transcript."""
        raw = self._truncate(transcript or "")
        normalized = self.normalizer.normalize(raw)
        operations = self.extractor.extract(normalized)

        if not operations and raw.strip():
            operations = [ParsedOperation.unrecognized(raw.strip())]

        for operation in operations:
            logger.info(f"📝 Extracted {operation.type}: "
                        f"fragment='{operation.item_fragment}' quantity={operation.quantity}")
        return operations

    def resolve(self, operation: ParsedOperation) -> ResolvedOperation:
        """Resolve one parsed operation's item fragment against the menu."""
        if operation.type == OperationType.UNRECOGNIZED:
            return ResolvedOperation(type=operation.type, text=operation.text)
        if operation.type not in OperationType.ITEM_OPERATIONS:
            return ResolvedOperation.command(operation.type)

        result = self.matcher.match(operation.item_fragment)
        if operation.type == OperationType.ADD:
            return ResolvedOperation.add(result.item, operation.quantity, fragment=operation.item_fragment)
        return ResolvedOperation.remove(result.item, operation.quantity, fragment=operation.item_fragment)

    def interpret(self, transcript: str) -> List[ResolvedOperation]:
        """Parse and resolve a transcript in one step."""
        return [self.resolve(operation) for operation in self.parse(transcript)]
