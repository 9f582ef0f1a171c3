#!/usr/bin/env python3
"""Password Rules — the ordered rule catalog (easy → chaotic).

The catalog is rebuilt from three frozen inputs: the SessionSeed (forbidden
letters, dictionary word) and the two live lookups. Order matters: it is the
disclosure order, so a rule is only shown once every rule before it passes.

Every predicate takes the rendered password and returns a bool, for any
string at all.
"""

import math
import random
import re
from dataclasses import dataclass
from typing import Callable

from live_lookups import LiveLookup, LookupState
from password_buffer import HAZARD, HOME, MARKER, graphemes

# ============================================================
# LOOKUP TABLES
# ============================================================

MONTHS = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]

BRANDS = ["pepsi", "starbucks", "shell"]

AFFIRMATIONS = ["i am loved", "i am worthy", "i am enough"]

# Atomic number = position + 1
PERIODIC_TABLE = [
    "H", "He", "Li", "Be", "B", "C", "N", "O", "F", "Ne",
    "Na", "Mg", "Al", "Si", "P", "S", "Cl", "Ar", "K", "Ca",
    "Sc", "Ti", "V", "Cr", "Mn", "Fe", "Co", "Ni", "Cu", "Zn",
    "Ga", "Ge", "As", "Se", "Br", "Kr", "Rb", "Sr", "Y", "Zr",
    "Nb", "Mo", "Tc", "Ru", "Rh", "Pd", "Ag", "Cd", "In", "Sn",
    "Sb", "Te", "I", "Xe", "Cs", "Ba", "La", "Ce", "Pr", "Nd",
    "Pm", "Sm", "Eu", "Gd", "Tb", "Dy", "Ho", "Er", "Tm", "Yb",
    "Lu", "Hf", "Ta", "W", "Re", "Os", "Ir", "Pt", "Au", "Hg",
    "Tl", "Pb", "Bi", "Po", "At", "Rn", "Fr", "Ra", "Ac", "Th",
    "Pa", "U", "Np", "Pu", "Am", "Cm", "Bk", "Cf", "Es", "Fm",
    "Md", "No", "Lr", "Rf", "Db", "Sg", "Bh", "Hs", "Mt", "Ds",
    "Rg", "Cn", "Nh", "Fl", "Mc", "Lv", "Ts", "Og",
]
ATOMIC_NUMBERS = {sym: i + 1 for i, sym in enumerate(PERIODIC_TABLE)}
TWO_LETTER_ELEMENTS = {sym for sym in PERIODIC_TABLE if len(sym) == 2}

ROMAN_VALUES = {"I": 1, "V": 5, "X": 10, "L": 50, "C": 100, "D": 500, "M": 1000}

VOWELS = set("aeiou")
ALPHABET = "abcdefghijklmnopqrstuvwxyz"
EXTINGUISHER = "🧯"
WEIGHTLIFTER = "\U0001F3CB"   # 🏋 base; any variant cluster starts with it

DEFAULT_WORDS = [
    "ephemeral", "labyrinth", "quixotic", "serendipity", "zephyr",
    "mellifluous", "petrichor", "sonder", "halcyon", "lagniappe",
    "nebula", "cacophony", "effervescent", "luminous", "whimsy",
]

# Rule thresholds
MIN_LENGTH = 5
DIGIT_SUM_TARGET = 25
ROMAN_PRODUCT_TARGET = 35
ATOMIC_SUM_MIN = 200
WEIGHTLIFTER_MIN = 4
VOWEL_MIN = 5
TEMPERATURE_TOLERANCE = 3.0

MARKER_RULE_ID = "paulHome"
VALID_TIERS = ("structural", "content", "emoji", "trivia", "meta", "live", "automaton")

_SIGNED_DECIMAL_RE = re.compile(r"[-+]?\d+(?:\.\d+)?")


# ============================================================
# DATA MODEL
# ============================================================

@dataclass(frozen=True)
class Rule:
    id: str
    label: str
    predicate: Callable[[str], bool]
    order: int
    tier: str

    def test(self, text: str) -> bool:
        return bool(self.predicate(text))


@dataclass(frozen=True)
class SessionSeed:
    forbidden: tuple
    word: str

    @classmethod
    def create(cls, rng: random.Random, words=None) -> "SessionSeed":
        """Draw the one-time session values. Never recomputed."""
        first, second = rng.sample(ALPHABET, 2)
        word = rng.choice(list(words or DEFAULT_WORDS))
        return cls(forbidden=(first, second), word=word)


# ============================================================
# TEXT HELPERS
# ============================================================

def sum_digits(text: str) -> int:
    return sum(int(ch) for ch in text if "0" <= ch <= "9")


def extract_roman_tokens(text: str) -> list[str]:
    """Maximal runs of Roman-numeral letters (case-insensitive)."""
    return re.findall(r"[IVXLCDM]+", text.upper())


def roman_to_int(token: str) -> int:
    total = 0
    for i, ch in enumerate(token):
        value = ROMAN_VALUES[ch]
        nxt = ROMAN_VALUES.get(token[i + 1], 0) if i + 1 < len(token) else 0
        total += -value if value < nxt else value
    return total


def is_prime(n: int) -> bool:
    if n < 2:
        return False
    i = 2
    while i * i <= n:
        if n % i == 0:
            return False
        i += 1
    return True


def contains_two_letter_element(text: str) -> bool:
    cells = graphemes(text)
    for a, b in zip(cells, cells[1:]):
        if len(a) == 1 and len(b) == 1 and (a.upper() + b.lower()) in TWO_LETTER_ELEMENTS:
            return True
    return False


def sum_atomic_numbers(text: str) -> int:
    """Sum atomic numbers over overlapping windows.

    At each position the two-letter symbol wins; otherwise the one-letter
    symbol counts. "HeNa" → He(2) + Na(11) = 13.
    """
    cells = graphemes(text)
    total = 0
    for i, cell in enumerate(cells):
        if len(cell) != 1:
            continue
        if i + 1 < len(cells) and len(cells[i + 1]) == 1:
            two = cell.upper() + cells[i + 1].lower()
            if two in ATOMIC_NUMBERS:
                total += ATOMIC_NUMBERS[two]
                continue
        total += ATOMIC_NUMBERS.get(cell.upper(), 0)
    return total


def count_weightlifters(text: str) -> int:
    return sum(1 for cell in graphemes(text) if cell.startswith(WEIGHTLIFTER))


def has_triple_repeat(text: str) -> bool:
    cells = graphemes(text)
    return any(cells[i] == cells[i + 1] == cells[i + 2] for i in range(len(cells) - 2))


def extract_numbers(text: str) -> list[float]:
    """Signed decimal tokens, e.g. "-3", "+4.5", "68.2"."""
    return [float(tok) for tok in _SIGNED_DECIMAL_RE.findall(text)]


def marker_is_home(text: str) -> bool:
    cells = graphemes(text)
    if HAZARD in cells:
        return False
    return any(a == MARKER and b == HOME for a, b in zip(cells, cells[1:]))


# ============================================================
# PREDICATES
# ============================================================

def _roman_product_ok(text: str) -> bool:
    values = [roman_to_int(t) for t in extract_roman_tokens(text)]
    values = [v for v in values if v > 1]
    if len(values) < 2:
        return False
    product = 1
    for v in values:
        product *= v
    return product == ROMAN_PRODUCT_TARGET


def _starts_with_letter(text: str) -> bool:
    for cell in graphemes(text):
        if cell == MARKER:
            continue
        return cell.isalpha()
    return False


def _forbidden_predicate(letters: tuple) -> Callable[[str], bool]:
    def predicate(text: str) -> bool:
        lc = text.lower()
        return not any(letter in lc for letter in letters)
    return predicate


def _word_predicate(word: str) -> Callable[[str], bool]:
    needle = word.lower()
    return lambda text: needle in text.lower()


def _temperature_predicate(reading: float, tolerance: float) -> Callable[[str], bool]:
    target = math.floor(reading + 0.5)
    return lambda text: any(abs(n - target) <= tolerance for n in extract_numbers(text))


def _never(text: str) -> bool:
    return False


def _always(text: str) -> bool:
    return True


def _definition_rule(lookup: LiveLookup):
    if lookup.state is LookupState.RESOLVED:
        word, definition = lookup.value
        return ("definition", f"Include the word that means: “{definition}”",
                _word_predicate(word))
    if lookup.state is LookupState.FAILED:
        return ("definitionSkipped", "Dictionary unavailable: this rule is skipped.", _always)
    return ("definition", "Fetching a word definition…", _never)


def _temperature_rule(lookup: LiveLookup, tolerance: float, location: str):
    where = f" in {location}" if location else ""
    if lookup.state is LookupState.RESOLVED:
        return ("temperature",
                f"Include the current temperature{where} in °F (within ±{tolerance:g}°).",
                _temperature_predicate(float(lookup.value), tolerance))
    if lookup.state is LookupState.FAILED:
        return ("temperatureSkipped", "Weather unavailable: this rule is skipped.", _always)
    return ("temperature", f"Checking the weather{where}…", _never)


# ============================================================
# CATALOG
# ============================================================

def build_rules(seed: SessionSeed, definition: LiveLookup, temperature: LiveLookup,
                tolerance: float = TEMPERATURE_TOLERANCE, location: str = "") -> list[Rule]:
    """Build the ordered catalog. Pure: same inputs, same rules."""
    forbidden = ", ".join(seed.forbidden)
    def_id, def_label, def_test = _definition_rule(definition)
    temp_id, temp_label, temp_test = _temperature_rule(temperature, tolerance, location)

    entries = [
        # STRUCTURAL
        ("len5", f"At least {MIN_LENGTH} characters.", "structural",
         lambda v: len(graphemes(v)) >= MIN_LENGTH),
        ("lower", "Must include a lowercase letter.", "structural",
         lambda v: re.search(r"[a-z]", v) is not None),
        ("upper", "Must include an uppercase letter.", "structural",
         lambda v: re.search(r"[A-Z]", v) is not None),
        ("num", "Must include a number.", "structural",
         lambda v: re.search(r"[0-9]", v) is not None),
        ("special", "Must include a special character.", "structural",
         lambda v: re.search(r"[^A-Za-z0-9\s]", v) is not None),

        # NUMERIC / CONTENT
        ("digitSum25", f"Digits must sum to {DIGIT_SUM_TARGET}.", "content",
         lambda v: sum_digits(v) == DIGIT_SUM_TARGET),
        ("month", "Include a month name (e.g., March).", "content",
         lambda v: any(m in v.lower() for m in MONTHS)),
        ("romanPresent", "Include a Roman numeral (I, V, X, L, C, D, M).", "content",
         lambda v: len(extract_roman_tokens(v)) > 0),
        ("brand", "Include one of our sponsors: pepsi, starbucks, or shell.", "content",
         lambda v: any(b in v.lower() for b in BRANDS)),
        ("romanProduct35", f"Roman numerals must multiply to {ROMAN_PRODUCT_TARGET}.", "content",
         _roman_product_ok),

        # STATEFUL / EMOJI
        ("fireExtinguisher", f"Every {HAZARD} needs an extinguisher {EXTINGUISHER}.", "emoji",
         lambda v: v.count(EXTINGUISHER) >= v.count(HAZARD)),
        ("noTripleRepeat", "No character three times in a row.", "emoji",
         lambda v: not has_triple_repeat(v)),
        ("startsWithLetter", "Must start with a letter.", "emoji", _starts_with_letter),
        ("twoWords", "Must contain at least two words.", "emoji",
         lambda v: len(v.split()) >= 2),
        ("affirm", 'Include an affirmation ("i am loved" / "i am worthy" / "i am enough").',
         "emoji", lambda v: any(a in v.lower() for a in AFFIRMATIONS)),

        # DOMAIN TRIVIA
        ("twoLetterElem", "Include a two-letter element symbol (e.g., He, Na, Fe).", "trivia",
         contains_two_letter_element),
        ("atomic200", f"Atomic numbers of the element symbols must add up to at least {ATOMIC_SUM_MIN}.",
         "trivia", lambda v: sum_atomic_numbers(v) >= ATOMIC_SUM_MIN),
        ("weights4", f"Add {WEIGHTLIFTER_MIN} weightlifters 🏋️ to keep Paul strong.", "trivia",
         lambda v: count_weightlifters(v) >= WEIGHTLIFTER_MIN),

        # META
        ("forbidden", f"You may NOT use these letters: {forbidden}", "meta",
         _forbidden_predicate(seed.forbidden)),
        ("vowels", f"Include at least {VOWEL_MIN} vowels.", "meta",
         lambda v: sum(1 for ch in v.lower() if ch in VOWELS) >= VOWEL_MIN),
        ("noEdgeWhitespace", "No spaces at the start or end.", "meta",
         lambda v: v == v.strip()),
        ("lenShown", "Include the password's own length as a number (e.g., “13”).", "meta",
         lambda v: str(len(graphemes(v))) in v),
        ("primeLen", "Password length must be a prime number.", "meta",
         lambda v: is_prime(len(graphemes(v)))),

        # LIVE
        (def_id, def_label, "live", def_test),
        (temp_id, temp_label, "live", temp_test),

        # AUTOMATON
        (MARKER_RULE_ID, f"Walk Paul {MARKER} home {HOME} without stepping in the fire {HAZARD}.",
         "automaton", marker_is_home),
    ]

    return [
        Rule(id=rid, label=label, predicate=test, order=i, tier=tier)
        for i, (rid, label, tier, test) in enumerate(entries)
    ]


def validate_catalog(rules: list[Rule]) -> list[str]:
    """Validate catalog structure. Returns list of warnings."""
    warnings = []
    seen = set()
    for i, r in enumerate(rules):
        if r.id in seen:
            warnings.append(f"{r.id}: duplicate rule id")
        seen.add(r.id)
        if r.order != i:
            warnings.append(f"{r.id}: order {r.order} does not match position {i}")
        if r.tier not in VALID_TIERS:
            warnings.append(f"{r.id}: invalid tier '{r.tier}' (expected {VALID_TIERS})")
        if not r.label:
            warnings.append(f"{r.id}: empty label")
    return warnings
