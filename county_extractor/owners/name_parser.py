"""
Person name parsing.

Two strategies are used:

- "LAST, FIRST MIDDLE SUFFIX": the text left of the first comma is the last
  name, the right side carries prefix, first, middle and suffix tokens.
- No comma: prefix and suffix tokens are stripped from the ends and the
  remaining tokens are read either as "LAST FIRST [MIDDLE...]" (the appraiser
  roll convention, inferred for all upper-case lines) or as natural
  "FIRST [MIDDLE...] LAST" order.

A line that does not yield both a first and a last name becomes a Company
holding the raw text so the owner is never dropped.
"""
import re

from ..utils import normalize_spaces
from .models import Company, Person

PREFIXES = {
    "MR": "Mr.",
    "MRS": "Mrs.",
    "MS": "Ms.",
    "MISS": "Miss",
    "MX": "Mx.",
    "DR": "Dr.",
    "PROF": "Prof.",
    "REV": "Rev.",
    "FR": "Fr.",
    "BR": "Br.",
    "CAPT": "Capt.",
    "COL": "Col.",
    "MAJ": "Maj.",
    "LT": "Lt.",
    "SGT": "Sgt.",
    "HON": "Hon.",
    "JUDGE": "Judge",
    "RABBI": "Rabbi",
    "SIR": "Sir",
    "DAME": "Dame",
}

SUFFIXES = {
    "JR": "Jr.",
    "SR": "Sr.",
    "II": "II",
    "III": "III",
    "IV": "IV",
    "PHD": "PhD",
    "MD": "MD",
    "ESQ": "Esq.",
    "JD": "JD",
    "DDS": "DDS",
    "DVM": "DVM",
    "CPA": "CPA",
    "RET": "Ret.",
}

DIGIT_CONFUSIONS = str.maketrans({"0": "O", "1": "I", "3": "E", "5": "S", "8": "B"})

NAME_PATTERN = re.compile(r"^[A-Z][a-zA-Z\s\-',.]*$")
NAME_DELIMITERS = re.compile(r"([ \-',.])")


def map_prefix(token):
    if not token:
        return None
    return PREFIXES.get(token.replace(".", "").upper())


def map_suffix(token):
    if not token:
        return None
    return SUFFIXES.get(token.replace(".", "").upper())


def repair_digit_confusions(value):
    """
    Replace digits commonly keyed in place of letters (0->O, 1->I, 3->E, 5->S, 8->B).

    This corrupts names that legitimately contain digits, so callers only
    apply it when the county data is known to carry such typos.
    """
    if value is None:
        return None
    return value.translate(DIGIT_CONFUSIONS)


def format_name(value, repair_digits=False):
    """Title-case a name component, returning None when nothing valid is left"""
    if not value:
        return None
    cleaned = value.strip()
    if repair_digits:
        cleaned = repair_digit_confusions(cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned)
    cleaned = re.sub(r"[^A-Za-z \-',.]", "", cleaned)

    parts = []
    for part in NAME_DELIMITERS.split(cleaned):
        if not part:
            continue
        if NAME_DELIMITERS.fullmatch(part):
            parts.append(part)
        else:
            parts.append(part[0].upper() + part[1:].lower())
    result = "".join(parts).strip()
    result = re.sub(r"^[^A-Za-z]+", "", result)
    # collapse any double spaces left by removed characters
    result = re.sub(r"\s+", " ", result)

    if not result or not NAME_PATTERN.match(result):
        return None
    return result


def format_last_name(value, repair_digits=False):
    formatted = format_name(value, repair_digits=repair_digits)
    if formatted is None:
        return None
    return re.sub(r"[\s\-',.]+$", "", formatted) or None


def _is_all_caps(tokens):
    letters = "".join(tokens)
    return any(c.isalpha() for c in letters) and letters == letters.upper()


def _pop_prefix(tokens):
    if len(tokens) > 1:
        prefix = map_prefix(tokens[0])
        if prefix:
            return tokens[1:], prefix
    return tokens, None


def _pop_suffix(tokens):
    if len(tokens) > 1:
        suffix = map_suffix(tokens[-1])
        if suffix:
            return tokens[:-1], suffix
    return tokens, None


def _split_comma_form(text):
    last_part, rest = text.split(",", 1)
    last_tokens, suffix = _pop_suffix(last_part.split())
    tokens, prefix = _pop_prefix(rest.replace(",", " ").split())
    tokens, trailing_suffix = _pop_suffix(tokens)
    first = tokens[0] if tokens else None
    return {
        "first": first,
        "middle": " ".join(tokens[1:]),
        "last": " ".join(last_tokens),
        "prefix": prefix,
        "suffix": suffix or trailing_suffix,
    }


def _split_plain_form(text, last_name_first):
    tokens, prefix = _pop_prefix(text.split())
    tokens, suffix = _pop_suffix(tokens)
    if len(tokens) < 2:
        return None
    if last_name_first is None:
        last_name_first = _is_all_caps(tokens)
    if last_name_first:
        last, first, middle = tokens[0], tokens[1], tokens[2:]
    else:
        first, middle, last = tokens[0], tokens[1:-1], tokens[-1]
    return {
        "first": first,
        "middle": " ".join(middle),
        "last": last,
        "prefix": prefix,
        "suffix": suffix,
    }


def parse_person(line, last_name_first=None, repair_digits=False):
    """
    Parse one owner sub-line into a Person, or a Company holding the raw text.

    Args:
        line: whitespace-normalized owner text without joint-owner separators
        last_name_first: True for "LAST FIRST" sources, False for natural order,
            None to infer from casing (all upper-case means "LAST FIRST")
        repair_digits: apply repair_digit_confusions to every name component
    """
    text = normalize_spaces(line)
    if not text:
        return Company(name=None)

    if "," in text:
        parts = _split_comma_form(text)
    else:
        parts = _split_plain_form(text, last_name_first)
    if parts is None:
        return Company(name=text)

    first_name = format_name(parts["first"], repair_digits=repair_digits)
    last_name = format_last_name(parts["last"], repair_digits=repair_digits)
    if not first_name or not last_name:
        return Company(name=text)

    return Person(
        first_name=first_name,
        last_name=last_name,
        middle_name=format_name(parts["middle"], repair_digits=repair_digits),
        prefix_name=parts["prefix"],
        suffix_name=parts["suffix"],
    )


def normalize_person(person, repair_digits=False):
    """Re-apply name formatting to a Person coming from a sidecar file"""
    prefix = map_prefix(person.prefix_name) or format_name(person.prefix_name)
    suffix = map_suffix(person.suffix_name) or format_name(person.suffix_name)
    return Person(
        first_name=format_name(person.first_name, repair_digits=repair_digits),
        last_name=format_last_name(person.last_name, repair_digits=repair_digits),
        middle_name=format_name(person.middle_name, repair_digits=repair_digits),
        prefix_name=prefix,
        suffix_name=suffix,
    )
