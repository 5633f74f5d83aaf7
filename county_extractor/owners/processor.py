"""
Builds the owners sidecar (owners/owner_data.json) from a parcel page.

Current owners come from the county's owner block together with their
mailing address; historical owners come from the grantee column of the sales
table, keyed by the sale's ISO date.
"""
import os
import logging

from bs4 import BeautifulSoup

from ..utils import print_status, read_text, write_json, ensure_directory
from .classifier import classify_owner_line
from .models import (
    NO_OWNER_EXTRACTED,
    NO_OWNER_EXTRACTED_GRANTEE,
    Diagnostics,
    Person,
    PersonHint,
    Reject,
)
from .name_parser import format_last_name, format_name, parse_person
from .registry import EntityRegistry
from .linker import CURRENT

logger = logging.getLogger(__name__)

OWNER_DATA_FILE = "owner_data.json"


def _shares_last_name(hint):
    return len(hint.text.split()) == 1


def _leads_with_given_name(classified):
    """True for "JOHN & JANE SMITH": a given name first, the full name after it"""
    hints = [item for item in classified if isinstance(item, PersonHint)]
    return (
        len(hints) > 1
        and _shares_last_name(hints[0])
        and any(not _shares_last_name(hint) for hint in hints[1:])
    )


def parse_owner_line(raw, last_name_first=None, repair_digits=False):
    """
    Turn one raw owner line into owner entities and rejects.

    A joint-owner sub-line made of a single given name ("SMITH JOHN & JANE",
    "JOHN & JANE SMITH") takes the last name of the neighbouring owner.
    When the order is inferred and the line starts with such a given name,
    the full names after it are read in natural order.
    """
    classified = classify_owner_line(raw)
    if last_name_first is None and _leads_with_given_name(classified):
        last_name_first = False

    slots = []
    for item in classified:
        if isinstance(item, PersonHint) and not _shares_last_name(item):
            slots.append(parse_person(item.text, last_name_first=last_name_first, repair_digits=repair_digits))
        else:
            slots.append(item)

    owners = []
    rejects = []
    for position, item in enumerate(slots):
        if isinstance(item, Reject):
            rejects.append(item)
        elif isinstance(item, PersonHint):
            owners.append(_given_name_only(item, slots, position, repair_digits))
        else:
            owners.append(item)
    return owners, rejects


def _given_name_only(hint, slots, position, repair_digits):
    before = [s for s in slots[:position] if isinstance(s, Person)]
    after = [s for s in slots[position + 1:] if isinstance(s, Person)]
    neighbour = before[-1] if before else (after[0] if after else None)
    first_name = format_name(hint.text, repair_digits=repair_digits)
    if neighbour is None or not first_name:
        return parse_person(hint.text, repair_digits=repair_digits)
    return Person(first_name=first_name, last_name=format_last_name(neighbour.last_name))


def _build_owner_list(raw_lines, missing_reason, invalid, last_name_first, repair_digits, mailing=False):
    """Parse and deduplicate the owners recorded for one date"""
    registry = EntityRegistry(repair_digits=False)
    ordered_refs = []
    mailing_by_ref = {}

    for raw, mailing_address in raw_lines:
        owners, rejects = parse_owner_line(raw, last_name_first=last_name_first, repair_digits=repair_digits)
        if not owners:
            invalid.add(raw, missing_reason)
            continue
        for reject in rejects:
            invalid.add(reject.raw, missing_reason)
        for owner in owners:
            ref = registry.register(owner, raw=raw)
            if ref is None or ref in mailing_by_ref:
                continue
            ordered_refs.append(ref)
            mailing_by_ref[ref] = mailing_address

    invalid.extend(registry.diagnostics.to_list())

    result = []
    for ref in ordered_refs:
        owner = registry.get(ref).to_dict()
        if mailing:
            owner["mailing_address"] = mailing_by_ref.get(ref)
        result.append(owner)
    return result


def build_owner_data(parcel_id, candidates, grantees_by_date=None, last_name_first=None, repair_digits=False):
    """
    Args:
        parcel_id: parcel identifier used in the "property_<id>" key
        candidates: RawOwnerCandidate list for the current owners
        grantees_by_date: {ISO date: [raw grantee line, ...]}
        last_name_first: name order of the source, None to infer from casing
        repair_digits: apply digit-to-letter repair to name components

    Returns:
        {"property_<id>": {"owners_by_date": {...}, "invalid_owners": [...]}}
    """
    invalid = Diagnostics()
    owners_by_date = {
        CURRENT: _build_owner_list(
            [(c.text, c.mailing_address) for c in candidates],
            NO_OWNER_EXTRACTED,
            invalid,
            last_name_first,
            repair_digits,
            mailing=True,
        )
    }

    for iso_date, raw_names in sorted((grantees_by_date or {}).items()):
        sale_owners = _build_owner_list(
            [(raw, None) for raw in raw_names],
            NO_OWNER_EXTRACTED_GRANTEE,
            invalid,
            last_name_first,
            repair_digits,
        )
        if sale_owners:
            owners_by_date[iso_date] = sale_owners

    logger.info(
        f"Parcel {parcel_id}: {len(owners_by_date[CURRENT])} current owners, "
        f"{len(owners_by_date) - 1} dated owner lists, {len(invalid)} invalid owners"
    )
    return {
        f"property_{parcel_id}": {
            "owners_by_date": owners_by_date,
            "invalid_owners": invalid.to_list(),
        }
    }


def extract_owner_data(html, county, repair_digits=None):
    """Run the county's owner rules against a page and build the owners sidecar"""
    soup = BeautifulSoup(html, "html.parser")
    if repair_digits is None:
        repair_digits = county.REPAIR_DIGITS
    return build_owner_data(
        county.extract_parcel_id(soup),
        county.extract_owner_candidates(soup),
        county.extract_grantees_by_date(soup),
        last_name_first=county.NAME_ORDER_LAST_FIRST,
        repair_digits=repair_digits,
    )


def write_owner_data(parcel_dir, county, settings):
    """Owners stage: input.html -> owners/owner_data.json"""
    html = read_text(os.path.join(parcel_dir, "input.html"))
    owner_data = extract_owner_data(html, county, repair_digits=settings.repair_digits_for(county))

    owners_dir = os.path.join(parcel_dir, "owners")
    ensure_directory(owners_dir)
    out_path = os.path.join(owners_dir, OWNER_DATA_FILE)
    write_json(out_path, owner_data)
    print_status(f"Owner data written to {out_path}")
    return owner_data
