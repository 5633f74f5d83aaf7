"""
Owner line classification.

A raw owner line is first checked as a whole: care-of and PO-box lines are
rejected, and lines carrying an organizational keyword stay together as one
company (so "SMITH & SONS LLC" is not split). Anything else is split into
joint-owner sub-lines on "&" / "AND", and each sub-line is classified on its
own. The rules are evaluated in order; the first match wins and lines that
match nothing are person hints for the name parser.
"""
import re

from ..utils import normalize_spaces
from .models import Company, PersonHint, Reject, NO_OWNER_EXTRACTED

COMPANY_KEYWORDS = (
    "inc", "incorporated", "llc", "l.l.c", "ltd", "limited", "corp", "corporation",
    "co", "company", "foundation", "alliance", "solutions", "services", "service",
    "trust", "trusts", "tr", "trustee", "trustees", "associates", "association", "assn",
    "hoa", "pllc", "pc", "p.c", "p.a", "lp", "llp", "plc", "n.a", "partners",
    "partnership", "bank", "church", "ministries", "university", "school", "club",
    "holdings", "properties", "property", "management", "group", "enterprises",
    "investment", "investments", "development", "realty", "fund", "estate",
    "county", "city of", "state of", "authority", "district",
)

# Letters on either side of a keyword mean it is part of a longer word
COMPANY_RE = re.compile(
    r"(?<![a-z])(?:" + "|".join(re.escape(kw) for kw in COMPANY_KEYWORDS) + r")\.?(?![a-z])",
    re.IGNORECASE,
)
ET_AL_RE = re.compile(r"(?<![a-z])et\.?\s*al\b", re.IGNORECASE)
CARE_OF_RE = re.compile(r"^(?:c/o|care of)\b", re.IGNORECASE)
PO_BOX_RE = re.compile(r"^(?:p\.?\s*o\.?\s*box|post office box)\b", re.IGNORECASE)

JOINT_OWNER_SPLIT_RE = re.compile(r"\s*&\s*|\s+and\s+", re.IGNORECASE)

# Tenancy markers trailing a name; not part of any name
TENANCY_MARKERS = (
    "L/E", "LE", "JTROS", "JT ROS", "JTWROS", "H/W", "H&W", "H & W", "ET UX", "ETUX",
    "ET VIR", "ETVIR", "AKA", "FKA", "NKA", "TEN COM", "TIC",
)

REJECT = "reject"
COMPANY = "company"


def is_company_name(text):
    """Company keyword or an "et al" line"""
    return bool(ET_AL_RE.search(text or "") or COMPANY_RE.search(text or ""))


CLASSIFICATION_RULES = [
    (lambda text: not text, REJECT),
    (CARE_OF_RE.search, REJECT),
    (PO_BOX_RE.search, REJECT),
    (is_company_name, COMPANY),
]


def classify(raw):
    """Classify one whitespace-normalized line as Company, PersonHint or Reject"""
    text = normalize_spaces((raw or "").replace("\xa0", " "))
    for predicate, outcome in CLASSIFICATION_RULES:
        if predicate(text):
            if outcome == REJECT:
                return Reject(raw=raw, reason=NO_OWNER_EXTRACTED)
            return Company(name=text)
    return PersonHint(text=text)


def strip_tenancy_markers(text):
    parts = normalize_spaces(text).split(" ")
    while parts:
        last_three = " ".join(parts[-3:]).upper()
        last_two = " ".join(parts[-2:]).upper()
        last_one = parts[-1].upper()
        if len(parts) > 3 and last_three in TENANCY_MARKERS:
            parts = parts[:-3]
        elif len(parts) > 2 and last_two in TENANCY_MARKERS:
            parts = parts[:-2]
        elif len(parts) > 1 and last_one in TENANCY_MARKERS:
            parts = parts[:-1]
        else:
            break
    return " ".join(parts)


def split_joint_owners(text):
    """Split "JOHN DOE & JANE DOE" style lines into per-owner sub-lines"""
    return [part for part in (normalize_spaces(p) for p in JOINT_OWNER_SPLIT_RE.split(text or "")) if part]


def classify_owner_line(raw):
    """Classify a raw owner line, splitting joint ownership into sub-lines"""
    whole = classify(raw)
    if not isinstance(whole, PersonHint):
        return [whole]

    results = []
    for part in split_joint_owners(strip_tenancy_markers(whole.text)):
        results.append(classify(part))
    return results or [Reject(raw=raw, reason=NO_OWNER_EXTRACTED)]
