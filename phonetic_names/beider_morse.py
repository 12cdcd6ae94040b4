"""
Beider-Morse Phonetic Name Encoding Module

This module converts personal names into one or more phonetic spellings so that names
originating from different languages can be approximately matched, e.g. for genealogical
record linkage.

## Overview

The core functionality is provided by the `PhoneticEngine` class, which runs a two-stage
rule-driven transduction:

1. **Input Preprocessing**: Lowercases, turns hyphens into spaces, handles name prefixes
   ("d'", "van", "de la", ...) and multi-word names
2. **Language Guessing**: Scores the name against per-language heuristics to find the
   likely origin languages (or "any")
3. **Main Rules**: Scans the name left to right; at each position the first matching rule
   of the bucket for the current character emits alternative phonemes tagged with the
   languages they are valid for. Branches whose languages become incompatible are pruned
4. **Final Rules**: Rescans every phoneme with the "common" rule table and then with the
   language-specific one, producing a cross-language canonical form
5. **Merging**: Phonemes with identical text are merged (their language sets are unioned)
   and joined with "|"

## Architecture

### Clean Service Separation
- **LanguageSet / Phoneme / PhonemeExpr**: Immutable value types
- **RuleSource**: Supplies raw rule and heuristic data (built-in tables or rule files)
- **RuleTableRegistry**: Parses and caches rule tables and language guessers, once per key
- **LanguageGuesser**: Heuristic origin-language scoring
- **PhonemeBuilder**: Per-call mutable accumulator of phoneme branches
- **PhoneticEngine**: Orchestrates normalization, rule application and merging

### Immutable, Shared Data
- Rule tables and guessers are frozen after their one-time load and shared between engines
- Loading is guarded by a lock so concurrent first use never loads a table twice
- The only mutable state lives in a PhonemeBuilder owned by a single encode call

## Usage Examples

```python
from phonetic_names.beider_morse import PhoneticEngine, NameConvention, RuleStage, LanguageSet

engine = PhoneticEngine(NameConvention.GENERIC, RuleStage.APPROX, concatenate=True)

engine.encode("Schwarz")
# Returns a "|"-separated list of phonetic spellings

engine.encode("d'Angelo")
# Returns "(<angelo>)-(<dangelo>)"

engine.encode("Kowalski", LanguageSet.of("polish"))
# Restricts the rules to Polish

# Module-level convenience
from phonetic_names.beider_morse import encode_name, guess_languages

encode_name("Van Damme")
guess_languages("Szczepański")  # LanguageSet.of("polish")
```

## Error Handling

- `ValueError`: invalid engine settings (final stage MAIN, max_phonemes < 1)
- `RuleConfigurationError`: a (convention, stage, language) table is not configured
- `RuleFormatError`: a rule or heuristic definition cannot be parsed

A character that no rule matches is not an error: it is copied through unchanged.

## Thread Safety

Engines are immutable and may be shared between threads. Each encode call works on its
own PhonemeBuilder.
"""

from __future__ import annotations
import logging
import re
import threading
import time
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple, Union
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType

from phonetic_names.beider_morse_data import (
    ANY_LANGUAGE,
    COMMON_RULES,
    INCLUDE_PREFIX,
    LANGUAGES,
    LANGUAGE_HEURISTICS,
    NAME_PREFIXES,
    RULE_TABLES,
)


# ════════════════════════════════════════════════════════════════════════════════
# ERRORS
# ════════════════════════════════════════════════════════════════════════════════


class BeiderMorseError(Exception):
    """Base class for phonetic engine errors."""


class RuleConfigurationError(BeiderMorseError):
    """A rule table or language guesser is not configured (a setup/packaging defect)."""


class RuleFormatError(RuleConfigurationError):
    """A rule or heuristic definition cannot be parsed."""

    def __init__(self, message: str, resource: Optional[str] = None, line: Optional[int] = None):
        self.resource = resource
        self.line = line
        location = ""
        if resource is not None:
            location = f" ({resource}" + (f", line {line}" if line is not None else "") + ")"
        super().__init__(message + location)


# ════════════════════════════════════════════════════════════════════════════════
# NAME CONVENTIONS AND RULE STAGES
# ════════════════════════════════════════════════════════════════════════════════


class NameConvention(Enum):
    """Name-origin family; the value is the resource prefix of its rule tables."""

    GENERIC = "gen"
    ASHKENAZI = "ash"
    SEPHARDIC = "sep"


class RuleStage(Enum):
    """Transformation phase a rule table belongs to."""

    MAIN = "rules"
    APPROX = "approx"
    EXACT = "exact"


def table_name(convention: NameConvention, stage: RuleStage, language: str) -> str:
    """Resource name of a rule table, e.g. ``gen_approx_common``."""
    return f"{convention.value}_{stage.value}_{language}"


# ════════════════════════════════════════════════════════════════════════════════
# LANGUAGE SETS
# ════════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class LanguageSet:
    """
    Either "any language" (``languages is None``) or an explicit, possibly empty, set.

    An empty set is a real terminal state: a branch restricted to no languages is dead
    and never turns back into "any".
    """

    languages: Optional[FrozenSet[str]] = None

    @classmethod
    def unrestricted(cls) -> "LanguageSet":
        return ANY_LANGUAGES

    @classmethod
    def of(cls, *languages: Union[str, Iterable[str]]) -> "LanguageSet":
        """Build a finite set: ``LanguageSet.of("german", "polish")`` or ``LanguageSet.of(["german"])``."""
        tags: List[str] = []
        for item in languages:
            if isinstance(item, str):
                tags.append(item)
            else:
                tags.extend(item)
        return cls(frozenset(tags))

    @classmethod
    def parse(cls, spec: str) -> "LanguageSet":
        """Parse ``"german+polish"``; ``"any"`` yields the unrestricted set."""
        spec = spec.strip()
        if spec == ANY_LANGUAGE:
            return ANY_LANGUAGES
        return cls(frozenset(tag.strip() for tag in spec.split("+") if tag.strip()))

    @property
    def is_any(self) -> bool:
        return self.languages is None

    @property
    def is_empty(self) -> bool:
        return self.languages is not None and not self.languages

    @property
    def is_singleton(self) -> bool:
        return self.languages is not None and len(self.languages) == 1

    def first_language(self) -> str:
        """Alphabetically first language of a finite, non-empty set."""
        if not self.languages:
            raise ValueError(f"{self} has no first language")
        return min(self.languages)

    def contains(self, language: str) -> bool:
        return self.languages is None or language in self.languages

    def restrict_to(self, other: "LanguageSet") -> "LanguageSet":
        """Intersection; "any" is the identity element."""
        if self.languages is None:
            return other
        if other.languages is None:
            return self
        return LanguageSet(self.languages & other.languages)

    def merge(self, other: "LanguageSet") -> "LanguageSet":
        """Union; "any" absorbs everything."""
        if self.languages is None or other.languages is None:
            return ANY_LANGUAGES
        return LanguageSet(self.languages | other.languages)

    def __str__(self) -> str:
        if self.languages is None:
            return ANY_LANGUAGE
        return "+".join(sorted(self.languages))


ANY_LANGUAGES = LanguageSet(None)
NO_LANGUAGES = LanguageSet(frozenset())


# ════════════════════════════════════════════════════════════════════════════════
# PHONEMES
# ════════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Phoneme:
    """Phonetic text fragment plus the languages it is valid for."""

    text: str
    languages: LanguageSet = ANY_LANGUAGES

    def append(self, text: str) -> "Phoneme":
        return replace(self, text=self.text + text)

    def join(self, other: "Phoneme") -> "Phoneme":
        """Concatenate texts and intersect language sets."""
        return Phoneme(self.text + other.text, self.languages.restrict_to(other.languages))

    def merge_with_language(self, languages: LanguageSet) -> "Phoneme":
        return replace(self, languages=self.languages.merge(languages))

    def __str__(self) -> str:
        return f"{self.text}[{self.languages}]"


@dataclass(frozen=True)
class PhonemeExpr:
    """Ordered alternatives produced by one rule."""

    phonemes: Tuple[Phoneme, ...]

    @classmethod
    def parse(cls, expr: str) -> "PhonemeExpr":
        """
        Parse ``text``, ``text[lang+lang]`` or ``(alt1|alt2[lang]|...)``.

        A trailing "|" inside the parentheses contributes an empty alternative.
        """
        expr = expr.strip()
        if expr.startswith("("):
            if not expr.endswith(")"):
                raise RuleFormatError(f"Phoneme expression starts with '(' but does not end with ')': {expr!r}")
            return cls(tuple(_parse_phoneme(part) for part in expr[1:-1].split("|")))
        return cls((_parse_phoneme(expr),))

    def __iter__(self) -> Iterator[Phoneme]:
        return iter(self.phonemes)

    def __len__(self) -> int:
        return len(self.phonemes)


def _parse_phoneme(text: str) -> Phoneme:
    bracket = text.find("[")
    if bracket < 0:
        return Phoneme(text, ANY_LANGUAGES)
    if not text.endswith("]"):
        raise RuleFormatError(f"Phoneme starts a language list with '[' but does not end with ']': {text!r}")
    return Phoneme(text[:bracket], LanguageSet.parse(text[bracket + 1 : -1]))


# ════════════════════════════════════════════════════════════════════════════════
# RULES AND RULE TABLES
# ════════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Rule:
    """
    A pattern with left/right contexts and the phonemes it produces.

    The left context is a regex that has to match the text ending where the pattern
    starts; the right context has to match the text starting right after it.
    """

    pattern: str
    left_context: str
    right_context: str
    phoneme: PhonemeExpr
    _left: Optional[re.Pattern[str]] = field(default=None, repr=False, compare=False)
    _right: Optional[re.Pattern[str]] = field(default=None, repr=False, compare=False)

    @classmethod
    def create(cls, pattern: str, left_context: str, right_context: str, phoneme: str) -> "Rule":
        """Factory method compiling the contexts once."""
        if not pattern:
            raise RuleFormatError("Rule pattern must not be empty")
        try:
            left = re.compile(f"(?:{left_context})\\Z") if left_context else None
            right = re.compile(right_context) if right_context else None
        except re.error as e:
            raise RuleFormatError(f"Invalid context in rule for {pattern!r}: {e}") from e
        return cls(pattern, left_context, right_context, PhonemeExpr.parse(phoneme), left, right)

    def matches(self, text: str, i: int) -> bool:
        """Check the pattern at position ``i`` and both contexts around it."""
        if not text.startswith(self.pattern, i):
            return False
        if self._left is not None and self._left.search(text, 0, i) is None:
            return False
        if self._right is not None and self._right.match(text, i + len(self.pattern)) is None:
            return False
        return True


@dataclass(frozen=True)
class RuleTable:
    """Rules grouped by the first character of their pattern, in configured order."""

    name: str
    buckets: Mapping[str, Tuple[Rule, ...]]

    @classmethod
    def from_rules(cls, name: str, rules: Iterable[Rule]) -> "RuleTable":
        grouped: Dict[str, List[Rule]] = {}
        for rule in rules:
            grouped.setdefault(rule.pattern[0], []).append(rule)
        return cls(name, MappingProxyType({char: tuple(bucket) for char, bucket in grouped.items()}))

    def rules_for(self, char: str) -> Tuple[Rule, ...]:
        return self.buckets.get(char, ())

    def find_match(self, text: str, i: int) -> Optional[Rule]:
        """First rule of the bucket for ``text[i]`` that matches at ``i``."""
        for rule in self.buckets.get(text[i], ()):
            if rule.matches(text, i):
                return rule
        return None

    @property
    def is_empty(self) -> bool:
        return not self.buckets

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self.buckets.values())


# ════════════════════════════════════════════════════════════════════════════════
# RULE SOURCES
# ════════════════════════════════════════════════════════════════════════════════

# Raw entries as supplied by a source: a 4-tuple rule or an "#include <table>" line
RuleEntry = Union[Tuple[str, str, str, str], str]
HeuristicEntry = Tuple[str, str, bool]


class RuleSource:
    """Supplies raw rule tables, language lists and language heuristics by resource name."""

    def rule_entries(self, name: str) -> Sequence[RuleEntry]:
        raise NotImplementedError

    def languages(self, convention: NameConvention) -> Tuple[str, ...]:
        raise NotImplementedError

    def heuristics(self, convention: NameConvention) -> Sequence[HeuristicEntry]:
        raise NotImplementedError


class BuiltinRuleSource(RuleSource):
    """Rule data shipped in ``beider_morse_data`` (or any mappings shaped like it)."""

    def __init__(
        self,
        rule_tables: Optional[Mapping[str, Sequence[RuleEntry]]] = None,
        languages: Optional[Mapping[str, Tuple[str, ...]]] = None,
        heuristics: Optional[Mapping[str, Sequence[HeuristicEntry]]] = None,
    ):
        self._rule_tables = RULE_TABLES if rule_tables is None else rule_tables
        self._languages = LANGUAGES if languages is None else languages
        self._heuristics = LANGUAGE_HEURISTICS if heuristics is None else heuristics

    def rule_entries(self, name: str) -> Sequence[RuleEntry]:
        try:
            return self._rule_tables[name]
        except KeyError:
            raise RuleConfigurationError(f"No rule table configured for '{name}'") from None

    def languages(self, convention: NameConvention) -> Tuple[str, ...]:
        try:
            return tuple(self._languages[convention.value])
        except KeyError:
            raise RuleConfigurationError(f"No languages configured for '{convention.value}'") from None

    def heuristics(self, convention: NameConvention) -> Sequence[HeuristicEntry]:
        return tuple(self._heuristics.get(convention.value, ()))


class DirectoryRuleSource(RuleSource):
    """
    Rule files in the classic Beider-Morse text format.

    - ``<table>.txt``: one rule per line, ``"pattern" "left" "right" "phoneme"``, with
      ``//`` line comments, ``/* ... */`` block comments and ``#include <table>`` lines
    - ``<conv>_languages.txt``: one language per line
    - ``<conv>_lang.txt``: heuristics, ``pattern lang1+lang2 true|false``
    """

    _quoted_pattern = re.compile(r'"((?:[^"\\]|\\.)*)"')

    def __init__(self, directory: Union[str, Path], encoding: str = "utf-8"):
        self._directory = Path(directory)
        self._encoding = encoding

    def _read_lines(self, name: str) -> List[str]:
        path = self._directory / f"{name}.txt"
        if not path.exists():
            raise RuleConfigurationError(f"No rule file for '{name}' in {self._directory}")
        try:
            data = path.read_bytes()
        except OSError as e:
            raise RuleConfigurationError(f"Cannot read rule file {path}: {e}") from e
        try:
            return data.decode(self._encoding).splitlines()
        except UnicodeDecodeError as e:
            line = data[: e.start].count(b"\n") + 1
            raise RuleFormatError(f"Not valid {self._encoding}: {e.reason}", name, line) from e

    def _content_lines(self, name: str) -> Iterator[Tuple[int, str]]:
        """Yield (line number, content) with comments and blank lines stripped."""
        in_block_comment = False
        for number, raw in enumerate(self._read_lines(name), start=1):
            line = raw.strip()
            if in_block_comment:
                if line.endswith("*/"):
                    in_block_comment = False
                continue
            if line.startswith("/*"):
                in_block_comment = not line.endswith("*/")
                continue
            comment = line.find("//")
            if comment >= 0:
                line = line[:comment].strip()
            if line:
                yield number, line

    def rule_entries(self, name: str) -> Sequence[RuleEntry]:
        entries: List[RuleEntry] = []
        for number, line in self._content_lines(name):
            if line.startswith(INCLUDE_PREFIX):
                entries.append(INCLUDE_PREFIX + line[len(INCLUDE_PREFIX) :].strip())
                continue
            parts = self._quoted_pattern.findall(line)
            if len(parts) != 4:
                raise RuleFormatError(f"Expected 4 quoted fields, got {len(parts)}: {line!r}", name, number)
            entries.append((parts[0], parts[1], parts[2], parts[3]))
        return entries

    def languages(self, convention: NameConvention) -> Tuple[str, ...]:
        name = f"{convention.value}_languages"
        return tuple(line for _number, line in self._content_lines(name))

    def heuristics(self, convention: NameConvention) -> Sequence[HeuristicEntry]:
        name = f"{convention.value}_lang"
        try:
            lines = list(self._content_lines(name))
        except RuleFormatError:
            raise
        except RuleConfigurationError as e:
            logging.warning(f"No language heuristics for '{convention.value}' in {self._directory}: {e}")
            return ()

        entries: List[HeuristicEntry] = []
        for number, line in lines:
            parts = line.split()
            if len(parts) != 3 or parts[2] not in ("true", "false"):
                raise RuleFormatError(f"Expected 'pattern languages true|false': {line!r}", name, number)
            entries.append((parts[0], parts[1], parts[2] == "true"))
        return entries


# ════════════════════════════════════════════════════════════════════════════════
# LANGUAGE GUESSING
# ════════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class LanguageHeuristic:
    """A regex whose match votes for (or disqualifies) some languages."""

    pattern: re.Pattern[str]
    languages: FrozenSet[str]
    accept_on_match: bool

    @classmethod
    def create(cls, pattern: str, languages: str, accept_on_match: bool) -> "LanguageHeuristic":
        try:
            compiled = re.compile(pattern)
        except re.error as e:
            raise RuleFormatError(f"Invalid language heuristic {pattern!r}: {e}") from e
        return cls(compiled, frozenset(languages.split("+")), accept_on_match)


class LanguageGuesser:
    """Scores a name against per-language heuristics."""

    def __init__(self, convention: NameConvention, languages: Sequence[str], heuristics: Sequence[LanguageHeuristic]):
        self._convention = convention
        self._languages = tuple(languages)
        self._heuristics = tuple(heuristics)

    @property
    def convention(self) -> NameConvention:
        return self._convention

    @property
    def languages(self) -> Tuple[str, ...]:
        return self._languages

    def scores(self, word: str) -> Dict[str, int]:
        """Per-language score; disqualified languages are left out."""
        text = word.lower()
        scores = {language: 0 for language in self._languages}
        disqualified: Set[str] = set()

        for heuristic in self._heuristics:
            if heuristic.pattern.search(text) is None:
                continue
            if heuristic.accept_on_match:
                for language in heuristic.languages:
                    if language in scores:
                        scores[language] += 1
            else:
                disqualified.update(heuristic.languages)

        return {language: score for language, score in scores.items() if language not in disqualified}

    def guess_languages(self, word: str) -> LanguageSet:
        """Languages tied for the greatest positive score, or "any" if none scored."""
        scores = self.scores(word)
        best = max(scores.values(), default=0)
        if best <= 0:
            return ANY_LANGUAGES
        return LanguageSet.of(language for language, score in scores.items() if score == best)


# ════════════════════════════════════════════════════════════════════════════════
# RULE TABLE REGISTRY (load-once cache)
# ════════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class CacheInfo:
    """Immutable registry cache information structure."""

    tables_loaded: int
    guessers_loaded: int
    table_names: Tuple[str, ...]


class RuleTableRegistry:
    """
    Parses rule tables and language guessers from a RuleSource and keeps them for the
    lifetime of the registry.

    Each key is loaded at most once; concurrent first use waits on the lock instead of
    loading a second copy.
    """

    def __init__(self, source: Optional[RuleSource] = None):
        self._source = source or BuiltinRuleSource()
        self._tables: Dict[str, RuleTable] = {}
        self._guessers: Dict[NameConvention, LanguageGuesser] = {}
        self._lock = threading.Lock()

    @property
    def source(self) -> RuleSource:
        return self._source

    def get_table(self, convention: NameConvention, stage: RuleStage, language: str) -> RuleTable:
        """Rule table for (convention, stage, language); raises RuleConfigurationError if unknown."""
        name = table_name(convention, stage, language)
        table = self._tables.get(name)
        if table is None:
            with self._lock:
                table = self._tables.get(name)
                if table is None:
                    table = self._load_table(name)
                    self._tables[name] = table
        return table

    def table_for_languages(
        self, convention: NameConvention, stage: RuleStage, language_set: LanguageSet
    ) -> RuleTable:
        """A single language uses its own table; anything else uses the "any" table."""
        language = language_set.first_language() if language_set.is_singleton else ANY_LANGUAGE
        return self.get_table(convention, stage, language)

    def get_guesser(self, convention: NameConvention) -> LanguageGuesser:
        guesser = self._guessers.get(convention)
        if guesser is None:
            with self._lock:
                guesser = self._guessers.get(convention)
                if guesser is None:
                    guesser = self._load_guesser(convention)
                    self._guessers[convention] = guesser
        return guesser

    def get_cache_info(self) -> CacheInfo:
        with self._lock:
            return CacheInfo(
                tables_loaded=len(self._tables),
                guessers_loaded=len(self._guessers),
                table_names=tuple(sorted(self._tables)),
            )

    def clear_cache(self) -> None:
        with self._lock:
            self._tables.clear()
            self._guessers.clear()

    def _load_table(self, name: str) -> RuleTable:
        start_time = time.perf_counter()
        try:
            rules = self._expand_entries(name, ())
        except RuleFormatError as e:
            logging.error(f"Failed to load rule table {name}: {e}")
            raise
        table = RuleTable.from_rules(name, rules)
        load_time = time.perf_counter() - start_time
        logging.debug(f"Loaded rule table {name} ({len(table)} rules) in {load_time:.4f}s")
        return table

    def _expand_entries(self, name: str, including: Tuple[str, ...]) -> List[Rule]:
        """Parse a table's entries, splicing included tables in place."""
        if name in including:
            chain = " -> ".join(including + (name,))
            raise RuleConfigurationError(f"Include cycle in rule tables: {chain}")

        rules: List[Rule] = []
        for entry in self._source.rule_entries(name):
            if isinstance(entry, str):
                if not entry.startswith(INCLUDE_PREFIX):
                    raise RuleFormatError(f"Unknown directive {entry!r}", name)
                included = entry[len(INCLUDE_PREFIX) :].strip()
                rules.extend(self._expand_entries(included, including + (name,)))
                continue
            try:
                rules.append(Rule.create(*entry))
            except RuleFormatError as e:
                raise RuleFormatError(str(e), name) from e
            except TypeError as e:
                raise RuleFormatError(f"Malformed rule entry {entry!r}", name) from e
        return rules

    def _load_guesser(self, convention: NameConvention) -> LanguageGuesser:
        start_time = time.perf_counter()
        languages = self._source.languages(convention)
        heuristics = [
            LanguageHeuristic.create(pattern, langs, accept) for pattern, langs, accept in self._source.heuristics(convention)
        ]
        load_time = time.perf_counter() - start_time
        logging.debug(
            f"Loaded language guesser for {convention.value} ({len(heuristics)} heuristics) in {load_time:.4f}s"
        )
        return LanguageGuesser(convention, languages, heuristics)


# ════════════════════════════════════════════════════════════════════════════════
# PHONEME BUILDER
# ════════════════════════════════════════════════════════════════════════════════


class PhonemeBuilder:
    """
    Phonemes alive at the current scan position.

    Phonemes are keyed by text, so equal texts are never held twice; inserting an
    equal text unions the language sets instead.
    """

    __slots__ = ("_phonemes",)

    def __init__(self, phonemes: Iterable[Phoneme] = ()):
        self._phonemes: Dict[str, Phoneme] = {}
        for phoneme in phonemes:
            self._add(phoneme)

    @classmethod
    def empty(cls, languages: LanguageSet) -> "PhonemeBuilder":
        """One zero-length phoneme restricted to ``languages``."""
        return cls([Phoneme("", languages)])

    def _add(self, phoneme: Phoneme) -> None:
        existing = self._phonemes.get(phoneme.text)
        if existing is None:
            self._phonemes[phoneme.text] = phoneme
        else:
            self._phonemes[phoneme.text] = existing.merge_with_language(phoneme.languages)

    def append(self, text: str) -> None:
        """Extend every phoneme by ``text``."""
        self._phonemes = {ph.text + text: ph.append(text) for ph in self._phonemes.values()}

    def apply(self, phoneme_expr: PhonemeExpr, max_phonemes: int) -> None:
        """
        Combine every phoneme with every alternative of ``phoneme_expr``.

        Pairs with incompatible languages are dropped. Generation stops once
        ``max_phonemes`` distinct phonemes exist; earlier combinations win.
        """
        result = PhonemeBuilder()
        for joined in self._combinations(phoneme_expr):
            result._add(joined)
            if len(result) >= max_phonemes:
                break
        self._phonemes = result._phonemes

    def _combinations(self, phoneme_expr: PhonemeExpr) -> Iterator[Phoneme]:
        for left in self._phonemes.values():
            for right in phoneme_expr:
                joined = left.join(right)
                if not joined.languages.is_empty:
                    yield joined

    @property
    def phonemes(self) -> Tuple[Phoneme, ...]:
        return tuple(self._phonemes.values())

    def make_string(self) -> str:
        """Phoneme texts joined with "|"."""
        return "|".join(self._phonemes)

    def __iter__(self) -> Iterator[Phoneme]:
        return iter(tuple(self._phonemes.values()))

    def __len__(self) -> int:
        return len(self._phonemes)


# ════════════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ════════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class BeiderMorseConfig:
    """Immutable engine configuration."""

    # Prefixes per convention, checked in order
    name_prefixes: Mapping[NameConvention, Tuple[str, ...]]

    # Elision prefix split off generic names ("d'angelo")
    elision_prefix: str

    # Precompiled regex patterns
    whitespace_pattern: re.Pattern[str]
    quote_pattern: re.Pattern[str]

    default_max_phonemes: int

    @classmethod
    def create_default(cls) -> "BeiderMorseConfig":
        """Factory method to create the default configuration."""
        return cls(
            name_prefixes=MappingProxyType(
                {convention: tuple(NAME_PREFIXES[convention.value]) for convention in NameConvention}
            ),
            elision_prefix="d'",
            whitespace_pattern=re.compile(r"\s+"),
            quote_pattern=re.compile(r"'"),
            default_max_phonemes=20,
        )

    def with_name_prefixes(self, convention: NameConvention, prefixes: Iterable[str]) -> "BeiderMorseConfig":
        """Immutable update of one convention's prefix list."""
        updated = dict(self.name_prefixes)
        updated[convention] = tuple(prefixes)
        return replace(self, name_prefixes=MappingProxyType(updated))

    def with_default_max_phonemes(self, max_phonemes: int) -> "BeiderMorseConfig":
        return replace(self, default_max_phonemes=max_phonemes)


# ════════════════════════════════════════════════════════════════════════════════
# MAIN PHONETIC ENGINE
# ════════════════════════════════════════════════════════════════════════════════


class PhoneticEngine:
    """
    Converts names into phonetic representations.

    Immutable and thread-safe; make a new engine to change settings.
    """

    def __init__(
        self,
        convention: NameConvention,
        final_stage: RuleStage,
        concatenate: bool,
        max_phonemes: Optional[int] = None,
        registry: Optional[RuleTableRegistry] = None,
        config: Optional[BeiderMorseConfig] = None,
    ):
        if final_stage is RuleStage.MAIN:
            raise ValueError(f"final_stage must not be {RuleStage.MAIN}")
        self._config = config or _get_default_config()
        if max_phonemes is None:
            max_phonemes = self._config.default_max_phonemes
        if max_phonemes < 1:
            raise ValueError(f"max_phonemes must be at least 1, got {max_phonemes}")

        self._convention = convention
        self._final_stage = final_stage
        self._concatenate = concatenate
        self._max_phonemes = max_phonemes
        self._registry = registry or _get_global_registry()
        self._prefixes = self._config.name_prefixes.get(convention, ())

    @property
    def convention(self) -> NameConvention:
        return self._convention

    @property
    def final_stage(self) -> RuleStage:
        return self._final_stage

    @property
    def concatenate(self) -> bool:
        return self._concatenate

    @property
    def max_phonemes(self) -> int:
        return self._max_phonemes

    @property
    def guesser(self) -> LanguageGuesser:
        return self._registry.get_guesser(self._convention)

    def encode(self, word: str, language_set: Optional[LanguageSet] = None) -> str:
        """
        Encode a name into its phonetic representation.

        Args:
            word: Name to encode; spaces or hyphens separate words
            language_set: Possible origin languages; guessed from ``word`` when omitted

        Returns:
            "|"-separated phonetic alternatives; multi-word names yield "-"-separated
            groups and prefixed generic names "(without)-(with)" groups
        """
        if language_set is None:
            language_set = self.guesser.guess_languages(word)

        main_rules = self._registry.table_for_languages(self._convention, RuleStage.MAIN, language_set)
        # rules shared by all languages
        common_final_rules = self._registry.get_table(self._convention, self._final_stage, COMMON_RULES)
        # rules that would be wrong if applied to other languages
        language_final_rules = self._registry.table_for_languages(self._convention, self._final_stage, language_set)

        text = word.lower().replace("-", " ").strip()

        if self._convention is NameConvention.GENERIC:
            split = self._split_generic_prefix(text)
            if split is not None:
                remainder, combined = split
                return f"({self.encode(remainder)})-({self.encode(combined)})"

        words = [w for w in self._config.whitespace_pattern.split(text) if w]
        kept = self._remove_prefix_words(words)

        if self._concatenate:
            text = " ".join(kept)
        elif len(kept) == 1:
            # single word: keep the original spelling (prefix words and apostrophes included)
            text = words[0]
        elif kept:
            return "-".join(self.encode(w) for w in kept)
        else:
            text = ""

        builder = self._apply_rules(main_rules, text, PhonemeBuilder.empty(language_set))
        builder = self._apply_final_rules(builder, common_final_rules)
        builder = self._apply_final_rules(builder, language_final_rules)
        return builder.make_string()

    def _split_generic_prefix(self, text: str) -> Optional[Tuple[str, str]]:
        """(remainder, prefix glued to remainder) if ``text`` starts with a known prefix."""
        elision = self._config.elision_prefix
        if text.startswith(elision):
            remainder = text[len(elision) :]
            return remainder, elision.rstrip("'") + remainder
        for prefix in self._prefixes:
            if text.startswith(prefix + " "):
                remainder = text[len(prefix) + 1 :]
                return remainder, prefix + remainder
        return None

    def _remove_prefix_words(self, words: List[str]) -> List[str]:
        if self._convention is NameConvention.GENERIC:
            return list(words)
        if self._convention is NameConvention.SEPHARDIC:
            words = [self._config.quote_pattern.split(w)[-1] for w in words]
        return [w for w in words if w not in self._prefixes]

    def _apply_rules(self, rules: RuleTable, text: str, builder: PhonemeBuilder) -> PhonemeBuilder:
        """Scan ``text`` left to right; unmatched characters are copied through."""
        i = 0
        while i < len(text):
            rule = rules.find_match(text, i)
            if rule is None:
                builder.append(text[i])
                i += 1
            else:
                builder.apply(rule.phoneme, self._max_phonemes)
                i += len(rule.pattern)
        return builder

    def _apply_final_rules(self, builder: PhonemeBuilder, final_rules: RuleTable) -> PhonemeBuilder:
        """Rescan each phoneme with ``final_rules`` and merge results with equal text."""
        if final_rules.is_empty:
            return builder

        merged: Dict[str, Phoneme] = {}
        for phoneme in builder:
            sub_builder = self._apply_rules(final_rules, phoneme.text, PhonemeBuilder.empty(phoneme.languages))
            for new_phoneme in sub_builder:
                existing = merged.get(new_phoneme.text)
                if existing is None:
                    merged[new_phoneme.text] = new_phoneme
                else:
                    merged[new_phoneme.text] = existing.merge_with_language(new_phoneme.languages)

        return PhonemeBuilder(merged[text] for text in sorted(merged))


# ════════════════════════════════════════════════════════════════════════════════
# PERFORMANCE CHECK
# ════════════════════════════════════════════════════════════════════════════════


def run_performance_test() -> None:
    """Run a quick throughput check over a mixed list of names."""
    sample_names = [
        "Schwarzenegger",
        "Kowalski",
        "d'Angelo",
        "Van der Berg",
        "Dubois",
        "Gonzalez",
        "Szczepanski",
        "Rosenfeld",
        "Abramovich",
        "De la Cruz",
        "McAllister",
        "Giuseppe Verdi",
    ] * 100

    for convention in NameConvention:
        for stage in (RuleStage.APPROX, RuleStage.EXACT):
            engine = PhoneticEngine(convention, stage, concatenate=True)
            start = time.perf_counter()
            for name in sample_names:
                engine.encode(name)
            elapsed = time.perf_counter() - start
            rate = len(sample_names) / elapsed
            print(
                f"{convention.name:<9} {stage.name:<6}: {len(sample_names)} names in {elapsed:.3f}s "
                f"({rate:.0f} names/second)"
            )


# ════════════════════════════════════════════════════════════════════════════════
# MODULE-LEVEL CONVENIENCE FUNCTIONS
# ════════════════════════════════════════════════════════════════════════════════

# Global instances for module-level functions
_global_lock = threading.Lock()
_global_config: Optional[BeiderMorseConfig] = None
_global_registry: Optional[RuleTableRegistry] = None
_global_engines: Dict[Tuple[NameConvention, RuleStage, bool], PhoneticEngine] = {}


def _get_default_config() -> BeiderMorseConfig:
    global _global_config
    if _global_config is None:
        with _global_lock:
            if _global_config is None:
                _global_config = BeiderMorseConfig.create_default()
    return _global_config


def _get_global_registry() -> RuleTableRegistry:
    """Get or create the process-wide registry over the built-in rule data."""
    global _global_registry
    if _global_registry is None:
        with _global_lock:
            if _global_registry is None:
                _global_registry = RuleTableRegistry(BuiltinRuleSource())
    return _global_registry


def _get_global_engine(convention: NameConvention, final_stage: RuleStage, concatenate: bool) -> PhoneticEngine:
    key = (convention, final_stage, concatenate)
    engine = _global_engines.get(key)
    if engine is None:
        engine = PhoneticEngine(convention, final_stage, concatenate)
        with _global_lock:
            engine = _global_engines.setdefault(key, engine)
    return engine


def encode_name(
    name: str,
    convention: NameConvention = NameConvention.GENERIC,
    final_stage: RuleStage = RuleStage.APPROX,
    concatenate: bool = True,
) -> str:
    """
    Module-level convenience function for phonetic encoding.

    Args:
        name: Input name string
        convention: Name-origin family
        final_stage: APPROX or EXACT final normalization
        concatenate: Encode multi-word names as one word

    Returns:
        The engine's "|"-separated encoding
    """
    return _get_global_engine(convention, final_stage, concatenate).encode(name)


def guess_languages(name: str, convention: NameConvention = NameConvention.GENERIC) -> LanguageSet:
    """Likely origin languages of ``name`` according to the built-in heuristics."""
    return _get_global_registry().get_guesser(convention).guess_languages(name)


def clear_cache() -> None:
    """Drop all loaded rule tables and guessers of the global registry."""
    _get_global_registry().clear_cache()


def get_cache_info() -> Dict[str, Union[int, Tuple[str, ...]]]:
    """Get global registry cache information as a dictionary."""
    cache_info = _get_global_registry().get_cache_info()
    return {
        "tables_loaded": cache_info.tables_loaded,
        "guessers_loaded": cache_info.guessers_loaded,
        "table_names": cache_info.table_names,
    }


# CLI entry point
if __name__ == "__main__":
    run_performance_test()
