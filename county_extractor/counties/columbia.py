"""
Columbia County (columbia.floridapa.com) parcel pages.

Owners come from the hidden `strOwner` input, falling back to the bold name
block of the "Owner" cell; the lines after the bold block are the mailing
address. Sales, buildings and extra features live in the
`parcelDetails_*Table` containers.
"""
import re
import logging

from ..mappings import lookup_columbia_use, map_deed_type, map_file_document_type, map_sale_type
from ..owners.linker import CurrentOwnerFallback
from ..owners.models import RawOwnerCandidate
from ..utils import (
    normalize_spaces,
    parse_currency,
    parse_date_to_iso,
    parse_dimensions,
    parse_int,
    split_lines,
    text_with_breaks,
    visible_text,
)

logger = logging.getLogger(__name__)

COUNTY_NAME = "Columbia"
SOURCE_URL = "https://columbia.floridapa.com/gis"

# Owner rolls list "LAST FIRST MIDDLE"
NAME_ORDER_LAST_FIRST = True
# Owner names on this roll carry keyed-in digits (0 for O, 1 for I, ...)
REPAIR_DIGITS = True

# The latest sale is also credited to the current owners
OWNER_FALLBACK = CurrentOwnerFallback.LATEST_SALE

lookup_use_code = lookup_columbia_use

SALE_DATE_RE = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$")
CLERK_LINK_RE = re.compile(r"ClerkLink\('([^']+)'\s*,\s*'([^']+)'\)")
BOOK_PAGE_RE = re.compile(r"(\d+)\s*/\s*(\d+)")
ADDRESS_WORDS_RE = re.compile(
    r"\b(ave|st|rd|dr|blvd|ln|lane|road|street|drive|suite|ste|fl|po box|unit|apt)\b", re.IGNORECASE
)
ZIP_RE = re.compile(r"\b\d{5}(?:-\d{4})?\b")
ACRES_RE = re.compile(r"([0-9.]+)\s*AC", re.IGNORECASE)
SQUARE_FEET_RE = re.compile(r"([0-9,.]+)\s*SF", re.IGNORECASE)
VALUES_HEADING_RE = re.compile(r"(\d{4})\s+(?:Certified|Working)\s+Values", re.IGNORECASE)
COUNTY_TAXABLE_RE = re.compile(r"county:\s*\$([0-9,.]+)", re.IGNORECASE)
DOLLARS_RE = re.compile(r"\$([0-9,.]+)")
SQFT_PER_ACRE = 43560


def _input_value(soup, name):
    tag = soup.find("input", attrs={"name": name})
    if tag is None:
        return None
    return tag.get("value") or None


def _inside_table(soup, container_id):
    container = soup.find(id=container_id)
    if container is None:
        return None
    return container.find("table", class_="parcelDetails_insideTable")


def _display_parcel(soup):
    id_table = soup.find("table", class_="parcelIDtable")
    bold = id_table.find("b") if id_table else None
    if bold is None:
        return None
    match = re.match(r"^([^\s(]+)", bold.get_text(strip=True))
    return match.group(1) if match else None


def extract_parcel_id(soup):
    parcel_id = _display_parcel(soup)
    if parcel_id:
        return parcel_id
    for name in ("formatPIN", "PIN", "PARCELID_Buffer"):
        value = normalize_spaces(_input_value(soup, name))
        if value:
            return value
    logger.warning("No parcel id found on page")
    return "unknown_id"


def looks_like_address(line):
    """ZIP, leading street number, or a number next to a street word ("ST CLAIR JOHN" is a name)"""
    return bool(
        ZIP_RE.search(line)
        or re.match(r"^\d+\s", line)
        or (re.search(r"\d", line) and ADDRESS_WORDS_RE.search(line))
    )


def _owner_value_cell(soup):
    for td in soup.find_all("td"):
        if re.match(r"^Owner$", normalize_spaces(td.get_text()), re.IGNORECASE):
            return td.find_next_sibling("td")
    return None


def _mailing_from_owner_cell(cell):
    """Lines following the first <br> of the owner cell, skipping the bold name block"""
    if cell is None:
        return None
    lines = []
    current = []
    capture = False
    for node in cell.children:
        name = getattr(node, "name", None)
        if name == "b":
            continue
        if name == "br":
            if capture:
                lines.append(normalize_spaces(" ".join(current)))
                current = []
            capture = True
            continue
        if capture:
            text = normalize_spaces(node.get_text() if name else str(node))
            if text:
                current.append(text)
    if capture:
        lines.append(normalize_spaces(" ".join(current)))
    lines = [line for line in lines if line]
    return ", ".join(lines) if lines else None


def extract_owner_candidates(soup):
    """Raw owner lines with the mailing address that accompanies them"""
    candidates = {}

    def add_lines(lines):
        names = [line for line in lines if not looks_like_address(line)]
        addresses = [line for line in lines if looks_like_address(line)]
        mailing_address = ", ".join(addresses) if addresses else None
        for name in names:
            key = name.lower()
            existing = candidates.get(key)
            if existing is None:
                candidates[key] = RawOwnerCandidate(text=name, mailing_address=mailing_address)
            elif not existing.mailing_address and mailing_address:
                existing.mailing_address = mailing_address

    owner_cell = _owner_value_cell(soup)

    str_owner = _input_value(soup, "strOwner")
    if str_owner and normalize_spaces(str_owner):
        add_lines(split_lines(re.sub(r"<br\s*/?>", "\n", str_owner, flags=re.IGNORECASE)))

    if not candidates and owner_cell is not None:
        name_block = owner_cell.find("b")
        if name_block is not None:
            add_lines(split_lines(text_with_breaks(name_block)))

    mailing_from_dom = _mailing_from_owner_cell(owner_cell)
    if mailing_from_dom:
        for candidate in candidates.values():
            if not candidate.mailing_address:
                candidate.mailing_address = mailing_from_dom

    logger.info(f"Found {len(candidates)} owner candidates")
    return list(candidates.values())


def extract_grantees_by_date(soup):
    """Grantee lines listed under each sale row, keyed by ISO sale date"""
    result = {}
    table = _inside_table(soup, "parcelDetails_SalesTable")
    if table is None:
        return result

    current_date = None
    for tr in table.find_all("tr"):
        tds = tr.find_all("td")
        if not tds:
            continue
        first_cell = normalize_spaces(tds[0].get_text())
        if SALE_DATE_RE.match(first_cell):
            current_date = parse_date_to_iso(first_cell)
            if current_date:
                result.setdefault(current_date, [])
            continue
        if not current_date:
            continue
        if len(tds) == 2 and first_cell.lower().startswith("grantee"):
            lines = re.split(r"\n|;", text_with_breaks(tds[1]))
            result[current_date].extend(line for line in (normalize_spaces(l) for l in lines) if line)
    return result


def extract_sales(soup):
    """Sales table rows as county-neutral sale dicts, in page order"""
    sales = []
    table = _inside_table(soup, "parcelDetails_SalesTable")
    if table is None:
        return sales

    for tr in table.find_all("tr")[1:]:
        tds = tr.find_all("td")
        if len(tds) < 4:
            continue
        cells = [normalize_spaces(td.get_text()) for td in tds]
        if not re.search(r"\d", cells[0]) or not SALE_DATE_RE.match(cells[0]):
            continue

        book_page = cells[2] or None
        clerk_ref = None
        link = tds[2].find("a")
        if link is not None:
            match = CLERK_LINK_RE.search(link.get("href") or link.get("onclick") or "")
            if match:
                clerk_ref = f"{match.group(1)}/{match.group(2)}"
        book, page = (None, None)
        book_page_match = BOOK_PAGE_RE.search(book_page or "")
        if book_page_match:
            book, page = book_page_match.groups()

        vacant_improved = cells[4] if len(cells) > 4 else None
        qualification = cells[5] if len(cells) > 5 else None
        deed_code = cells[3]
        if clerk_ref:
            document_name = f"Official Records {clerk_ref}"
        elif book_page:
            document_name = f"Book/Page {book_page}"
        else:
            document_name = None

        sales.append({
            "transfer_date": parse_date_to_iso(cells[0]),
            "price": parse_currency(cells[1]),
            "sale_type": map_sale_type(qualification, vacant_improved) or "TypicallyMotivated",
            "book": book,
            "page": page,
            "instrument_number": clerk_ref or book_page,
            "deed_code": deed_code,
            "deed_type": map_deed_type(deed_code),
            "document_type": map_file_document_type(deed_code),
            "document_name": document_name,
            "document_url": None,
        })
    return sales


def _labelled_value(soup, label_prefix):
    for td in soup.find_all("td"):
        if normalize_spaces(td.get_text()).startswith(label_prefix):
            sibling = td.find_next_sibling("td")
            if sibling is not None:
                return normalize_spaces(sibling.get_text())
    return None


def extract_property(soup):
    legal = None
    for legal_id in ("Flegal", "Blegal"):
        block = soup.find(id=legal_id)
        if block is not None:
            legal = visible_text(block) or None
            break

    built_year = None
    livable = None
    building_table = _inside_table(soup, "parcelDetails_BldgTable")
    if building_table is not None:
        rows = building_table.find_all("tr")
        tds = rows[1].find_all("td") if len(rows) > 1 else []
        if len(tds) >= 6:
            livable = normalize_spaces(tds[4].get_text()) or None
            year_text = normalize_spaces(tds[2].get_text())
            if re.match(r"^\d{4}$", year_text):
                built_year = int(year_text)

    total_area = None
    area_text = _labelled_value(soup, "Land Area")
    acres = ACRES_RE.search(area_text or "")
    if acres:
        total_area = str(round(float(acres.group(1)) * SQFT_PER_ACRE))

    return {
        "parcel_identifier": _display_parcel(soup) or normalize_spaces(_input_value(soup, "PARCELID_Buffer")) or None,
        "use_code": _labelled_value(soup, "Use"),
        "legal_description": legal,
        "built_year": built_year,
        "livable_floor_area": livable,
        "total_area": total_area,
        "zoning": None,
    }


def _value_cell(table, label_prefix):
    for tr in table.find_all("tr"):
        tds = tr.find_all("td")
        if len(tds) >= 2 and normalize_spaces(tds[0].get_text()).startswith(label_prefix):
            return tds[1]
    return None


def _county_taxable(cell):
    """The county figure of the "Total Taxable" cell, else its first dollar amount"""
    text = text_with_breaks(cell)
    match = COUNTY_TAXABLE_RE.search(text) or DOLLARS_RE.search(text)
    return parse_currency(match.group(1)) if match else None


def extract_tax(soup):
    """One entry per "<year> Certified Values" / "<year> Working Values" table"""
    taxes = []
    for table in soup.find_all("table", class_="parcelDetails_insideTable"):
        first_row = table.find("tr")
        heading = VALUES_HEADING_RE.search(normalize_spaces(first_row.get_text())) if first_row else None
        if not heading:
            continue
        cells = {label: _value_cell(table, label) for label in ("Mkt Land", "Building", "Just", "Assessed", "Total")}
        missing = [label for label, cell in cells.items() if cell is None]
        if missing:
            logger.warning(f"Skipping {heading.group(0)}: no {', '.join(missing)} row")
            continue
        taxes.append({
            "tax_year": int(heading.group(1)),
            "property_land_amount": parse_currency(cells["Mkt Land"].get_text()),
            "property_building_amount": parse_currency(cells["Building"].get_text()),
            "property_market_value_amount": parse_currency(cells["Just"].get_text()),
            "property_assessed_value_amount": parse_currency(cells["Assessed"].get_text()),
            "property_taxable_value_amount": _county_taxable(cells["Total"]),
        })
    return taxes


def extract_lot(soup):
    """Lot size from the units column of the land breakdown ("0.500 AC", "9,500 SF")"""
    table = _inside_table(soup, "parcelDetails_LandTable")
    if table is None:
        return None
    acres = 0.0
    square_feet = 0.0
    for tr in table.find_all("tr"):
        tds = tr.find_all("td")
        if len(tds) < 6 or re.match(r"^code$", normalize_spaces(tds[0].get_text()), re.IGNORECASE):
            continue
        units = normalize_spaces(tds[2].get_text())
        acre_match = ACRES_RE.search(units)
        sqft_match = SQUARE_FEET_RE.search(units)
        if acre_match:
            acres += float(acre_match.group(1))
        elif sqft_match:
            square_feet += parse_currency(sqft_match.group(1)) or 0.0
    if not acres and not square_feet:
        return None
    if acres:
        return {"lot_size_acre": acres, "lot_area_sqft": round(acres * SQFT_PER_ACRE + square_feet)}
    return {"lot_size_acre": round(square_feet / SQFT_PER_ACRE, 4), "lot_area_sqft": round(square_feet)}


def extract_layout_features(soup):
    buildings = []
    building_table = _inside_table(soup, "parcelDetails_BldgTable")
    if building_table is not None:
        for tr in building_table.find_all("tr", attrs={"bgcolor": True}):
            tds = tr.find_all("td")
            if len(tds) < 6:
                continue
            description = normalize_spaces(tds[1].get_text())
            if not description:
                continue
            buildings.append({
                "description": description,
                "base_area": parse_int(tds[3].get_text()),
                "actual_area": parse_int(tds[4].get_text()),
            })

    features = []
    feature_table = _inside_table(soup, "parcelDetails_XFOBTable")
    if feature_table is not None:
        for tr in feature_table.find_all("tr"):
            tds = tr.find_all("td")
            if len(tds) < 6:
                continue
            code = normalize_spaces(tds[0].get_text())
            description = normalize_spaces(tds[1].get_text())
            if re.match(r"^code$", code, re.IGNORECASE) or not description:
                continue
            width, length, area = parse_dimensions(tds[5].get_text())
            features.append({
                "code": code or None,
                "description": description,
                "year_built": parse_int(tds[2].get_text()),
                "value": parse_currency(tds[3].get_text()),
                "units": parse_currency(tds[4].get_text()),
                "width": width,
                "length": length,
                "area_square_feet": area,
            })

    return {"buildings": buildings, "features": features}
