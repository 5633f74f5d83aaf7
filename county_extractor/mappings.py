"""
Code tables shared by the county modules.

Property use codes map to the Lexicon property attributes; deed codes map to
deed types and file document types; sale qualification codes map to sale
types. Lookups that must succeed go through `require_mapping`, which raises
MappingError instead of guessing a value.
"""
import re

from .errors import MappingError


def _use(property_type, build_status, structure_form, usage, units_type=None, estate="FeeSimple"):
    return {
        "property_type": property_type,
        "build_status": build_status,
        "structure_form": structure_form,
        "property_usage_type": usage,
        "ownership_estate_type": estate,
        "number_of_units_type": units_type,
    }


# Columbia publishes descriptions ("SINGLE FAMILY (0100)"); keys are the
# description reduced to upper-case letters and digits
COLUMBIA_USE_CODES = {
    "VACANT": _use("LandParcel", "VacantLand", None, "Residential"),
    "SINGLEFAMILY": _use("Building", "Improved", "SingleFamilyDetached", "Residential", "One"),
    "MOBILEHOME": _use("ManufacturedHome", "Improved", "MobileHome", "Residential", "One"),
    "MULTIFAMLT10": _use("Building", "Improved", "MultiFamilyLessThan10", "Residential", "OneToFour"),
    "MULTIFAMGT10": _use("Building", "Improved", "MultiFamilyMoreThan10", "Residential"),
    "CONDOMINIA": _use("Unit", "Improved", "ApartmentUnit", "Residential", "One", estate="Condominium"),
    "COOPERATIVES": _use("Unit", "Improved", "ApartmentUnit", "Residential", "One", estate="Cooperative"),
    "MISCIMPROVED": _use("Building", "Improved", None, "Residential"),
    "VACANTCOMMERCIAL": _use("LandParcel", "VacantLand", None, "Commercial"),
    "STORES1STORY": _use("Building", "Improved", None, "RetailStore"),
    "OFFICEBLD1STY": _use("Building", "Improved", None, "OfficeBuilding"),
    "RESTAURANTCAFE": _use("Building", "Improved", None, "Restaurant"),
    "WAREHOSEDISTRB": _use("Building", "Improved", None, "Warehouse"),
    "IMPROVEDAG": _use("Building", "Improved", None, "Agricultural"),
    "CROPLAND": _use("LandParcel", "VacantLand", None, "DrylandCropland"),
    "TIMBERLAND": _use("LandParcel", "VacantLand", None, "TimberLand"),
    "IMPPASTURE": _use("LandParcel", "VacantLand", None, "ImprovedPasture"),
    "CHURCHES": _use("Building", "Improved", None, "Church"),
    "COUNTY": _use("LandParcel", None, None, "GovernmentProperty"),
    "NONAGACREAGE": _use("LandParcel", "VacantLand", None, "Residential"),
}

COLUMBIA_USE_CODE_ALIASES = {
    "MULTIFAM10": "MULTIFAMLT10",
}

# Charlotte publishes "0100 - Single Family"; keys are the four-digit code
CHARLOTTE_USE_CODES = {
    "0000": _use("LandParcel", "VacantLand", None, "Residential"),
    "0100": _use("Building", "Improved", "SingleFamilyDetached", "Residential", "One"),
    "0102": _use("Building", "Improved", "SingleFamilyDetached", "Residential", "One"),
    "0106": _use("Building", "Improved", "Modular", "Residential", "One"),
    "0200": _use("ManufacturedHome", "Improved", "ManufacturedHomeOnLand", "Residential", "One"),
    "0300": _use("Building", "Improved", "MultiFamilyMoreThan10", "Residential"),
    "0400": _use("Unit", "Improved", "ApartmentUnit", "Residential", "One", estate="Condominium"),
    "0800": _use("Building", "Improved", "Duplex", "Residential", "Two"),
    "0801": _use("Building", "Improved", "Triplex", "Residential", "Three"),
    "0802": _use("Building", "Improved", "Quadplex", "Residential", "Four"),
    "1000": _use("LandParcel", "VacantLand", None, "Commercial"),
    "1100": _use("Building", "Improved", None, "RetailStore"),
    "1700": _use("Building", "Improved", None, "OfficeBuilding"),
    "2100": _use("Building", "Improved", None, "Restaurant"),
    "7100": _use("Building", "Improved", None, "Church"),
    "9100": _use("Building", "Improved", None, "Utility"),
}


def normalize_use_description(value):
    if not value:
        return None
    text = re.sub(r"\([^)]*\)", "", str(value).upper())
    return re.sub(r"[^A-Z0-9]", "", text) or None


def lookup_columbia_use(value):
    """Exact key, then alias, then the longest table key contained in the description"""
    normalized = normalize_use_description(value)
    if not normalized:
        return None
    if normalized in COLUMBIA_USE_CODES:
        return COLUMBIA_USE_CODES[normalized]
    if normalized in COLUMBIA_USE_CODE_ALIASES:
        return COLUMBIA_USE_CODES[COLUMBIA_USE_CODE_ALIASES[normalized]]
    contained = [key for key in COLUMBIA_USE_CODES if key in normalized]
    if contained:
        return COLUMBIA_USE_CODES[max(contained, key=len)]
    return None


def lookup_charlotte_use(value):
    match = re.search(r"\d{4}", str(value or ""))
    if not match:
        return None
    return CHARLOTTE_USE_CODES.get(match.group(0))


def require_mapping(value, lookup, path):
    """Run a lookup that must succeed; unmapped values abort the parcel"""
    mapped = lookup(value)
    if mapped is None:
        raise MappingError(f"Unknown enum value {value}.", path=path)
    return mapped


# Ordered (codes, deed type) rules; first match wins
DEED_TYPE_RULES = [
    (("WD", "WTY", "W", "WARRANTY DEED"), "Warranty Deed"),
    (("SWD", "SW", "SPEC WD", "SPECIAL WARRANTY DEED"), "Special Warranty Deed"),
    (("QCD", "QC", "Q", "QUITCLAIM", "QUIT CLAIM", "QUITCLAIM DEED"), "Quitclaim Deed"),
    (("GD",), "Grant Deed"),
    (("BSD",), "Bargain and Sale Deed"),
    (("LBD",), "Lady Bird Deed"),
    (("TOD", "TODD"), "Transfer on Death Deed"),
    (("SD", "SHRF'S DEED"), "Sheriff's Deed"),
    (("TD", "T", "TAX DEED"), "Tax Deed"),
    (("TRD", "TR", "TQ", "TRUSTEE DEED"), "Trustee's Deed"),
    (("PRD", "PERS REP DEED"), "Personal Representative Deed"),
    (("CD", "C", "CORR DEED"), "Correction Deed"),
    (("DIL", "DILF"), "Deed in Lieu of Foreclosure"),
    (("LED", "LE", "L"), "Life Estate Deed"),
    (("JTD",), "Joint Tenancy Deed"),
    (("TIC",), "Tenancy in Common Deed"),
    (("CPD",), "Community Property Deed"),
    (("GIFT DEED",), "Gift Deed"),
    (("ITD",), "Interspousal Transfer Deed"),
    (("SMD",), "Special Master's Deed"),
    (("COD",), "Court Order Deed"),
    (("CFD", "LC", "CT"), "Contract for Deed"),
    (("QTD",), "Quiet Title Deed"),
    (("AD",), "Administrator's Deed"),
    (("RD",), "Receiver's Deed"),
    (("ROW",), "Right of Way Deed"),
    (("AOC", "AS"), "Assignment of Contract"),
    (("ROC",), "Release of Contract"),
    (("CONV", "OTH", "A", "F", "M", "R", "RF", "X"), "Miscellaneous"),
]

# Document types for codes that are not title transfers
FILE_DOCUMENT_RULES = [
    (("ASSG",), "Assignment"),
    (("JUDG",), "AbstractOfJudgment"),
]

TITLE_CODES = frozenset(code for codes, _ in DEED_TYPE_RULES for code in codes) - frozenset(("AOC", "ROC", "AS"))


def normalize_code(code):
    return re.sub(r"\s+", " ", str(code or "")).strip().upper()


def _first_rule(code, rules):
    normalized = normalize_code(code)
    if not normalized:
        return None
    for codes, value in rules:
        if normalized in codes:
            return value
    return None


def map_deed_type(code):
    return _first_rule(code, DEED_TYPE_RULES)


def map_file_document_type(code):
    normalized = normalize_code(code)
    if normalized in TITLE_CODES or normalized == "DEED":
        return "Title"
    return _first_rule(normalized, FILE_DOCUMENT_RULES)


# Ordered (predicate, sale type) rules over the upper-cased qualification text
SALE_TYPE_RULES = [
    (lambda v: v in ("Q", "QUAL", "QUALIFIED", "01"), "TypicallyMotivated"),
    (lambda v: v == "U" or v.startswith("UNQUAL"), None),
    (lambda v: "PROBATE" in v, "ProbateSale"),
    (lambda v: "SHORT" in v, "ShortSale"),
    (lambda v: "COURT" in v, "CourtOrderedNonForeclosureSale"),
    (lambda v: "REO" in v or "POST FORECLOSURE" in v, "ReoPostForeclosureSale"),
    (lambda v: "RELOCATION" in v, "RelocationSale"),
    (lambda v: "TRUSTEE" in v and "JUD" in v, "TrusteeJudicialForeclosureSale"),
    (lambda v: "TRUSTEE" in v, "TrusteeNonJudicialForeclosureSale"),
]


def map_sale_type(*values):
    """First non-empty mapping across the given qualification texts"""
    for value in values:
        token = normalize_code(value)
        if not token:
            continue
        for predicate, sale_type in SALE_TYPE_RULES:
            if predicate(token):
                if sale_type:
                    return sale_type
                break
    return None
