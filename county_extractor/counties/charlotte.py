"""
Charlotte County (ccappraiser.com) parcel pages.

The page is a w3.css layout: sections are introduced by <h2> headings and
tabular data sits in tables labelled by `caption.blockcaption`. Only current
owners are published; the sales table carries no grantee names.
"""
import re
import logging

from ..mappings import lookup_charlotte_use, map_sale_type
from ..owners.linker import CurrentOwnerFallback
from ..owners.models import RawOwnerCandidate
from ..utils import (
    normalize_spaces,
    parse_currency,
    parse_date_to_iso,
    parse_int,
    split_lines,
    text_with_breaks,
)

logger = logging.getLogger(__name__)

COUNTY_NAME = "Charlotte"
SOURCE_URL = "https://www.ccappraiser.com/Show_parcel.asp"

# Mixed spellings on this roll; infer the order from casing
NAME_ORDER_LAST_FIRST = None
REPAIR_DIGITS = False

OWNER_FALLBACK = CurrentOwnerFallback.NONE

lookup_use_code = lookup_charlotte_use

OWNER_SEPARATOR_RE = re.compile(r";+|\s*\|\s*|\s+/\s+")
TAX_YEAR_RE = re.compile(r"\b(\d{4})\b")
SQFT_PER_ACRE = 43560


def _find_heading(soup, heading_text):
    target = heading_text.strip().lower()
    for h2 in soup.find_all("h2"):
        if normalize_spaces(h2.get_text()).lower() == target:
            return h2
    return None


def _find_caption(soup, keyword):
    keyword = keyword.lower()
    for candidate in soup.find_all("caption", class_="blockcaption"):
        if keyword in normalize_spaces(candidate.get_text()).lower():
            return candidate
    return None


def _captioned_rows(soup, keyword):
    """Rows of the table captioned with `keyword`, as {lowercased header: text}"""
    caption = _find_caption(soup, keyword)
    if caption is None:
        return []
    table = caption.find_parent("table")
    rows = table.find_all("tr") if table else []
    if not rows:
        return []

    header_cells = rows[0].find_all("th") or rows[0].find_all("td")
    headers = [normalize_spaces(cell.get_text()).rstrip(":").lower() or f"column{i + 1}"
               for i, cell in enumerate(header_cells)]
    records = []
    for row in rows[1:]:
        cells = row.find_all("td")
        if not cells:
            continue
        record = {header: normalize_spaces(cells[i].get_text()) if i < len(cells) else ""
                  for i, header in enumerate(headers)}
        if any(record.values()):
            records.append(record)
    return records


def _column(record, *names):
    for key, value in record.items():
        if any(name in key for name in names):
            return value or None
    return None


def extract_parcel_id(soup):
    for h1 in soup.find_all("h1"):
        text = normalize_spaces(h1.get_text())
        match = re.search(r"property record information for\s+([A-Za-z0-9-]+)", text, re.IGNORECASE)
        if match:
            return match.group(1)
    logger.warning("No parcel id found on page")
    return "unknown_id"


def _owner_lines(soup):
    heading = _find_heading(soup, "Owner:")
    if heading is None:
        return []
    container = heading.find_parent("div", class_="w3-cell")
    block = container.find("div", class_="w3-border") if container else None
    if block is None:
        return []
    return split_lines(text_with_breaks(block).replace("\xa0", " "))


def split_owner_names(line):
    """
    Split the owner line into one name per owner.

    Names are separated by ";", "|" or a spaced " / ". An unspaced slash is
    part of a tenancy marker ("L/E", "H/W") or a care-of ("C/O") and is left
    for the classifier.
    """
    return [name for name in (normalize_spaces(part) for part in OWNER_SEPARATOR_RE.split(line or "")) if name]


def extract_owner_candidates(soup):
    """The owner box holds the name on its first line and the mailing address below"""
    lines = _owner_lines(soup)
    if not lines:
        return []
    mailing_address = ", ".join(lines[1:]) or None
    return [RawOwnerCandidate(text=name, mailing_address=mailing_address) for name in split_owner_names(lines[0])]


def extract_grantees_by_date(soup):
    return {}


def _sales_rows(soup):
    heading = _find_heading(soup, "Sales Information")
    if heading is None:
        return [], None
    wrapper = heading.find_next_sibling("div", class_="w3-responsive")
    table = wrapper.find("table") if wrapper else None
    if table is None:
        return [], None
    rows = table.find_all("tr")
    if not rows:
        return [], table
    headers = [normalize_spaces(cell.get_text()).lower() for cell in rows[0].find_all(["th", "td"])]
    records = []
    for row in rows[1:]:
        cells = row.find_all("td")
        if not cells:
            continue
        record = {}
        for i, header in enumerate(headers):
            if i >= len(cells):
                break
            record[header] = normalize_spaces(cells[i].get_text())
            link = cells[i].find("a", href=True)
            if link is not None:
                record[f"{header} url"] = link["href"]
        if any(record.values()):
            records.append(record)
    return records, table


def extract_sales(soup):
    sales = []
    records, _ = _sales_rows(soup)
    for record in records:
        book_page = _column(record, "book/page")
        book, page = (None, None)
        if book_page and "/" in book_page:
            book, page = [part.strip() or None for part in book_page.split("/", 1)]
        sales.append({
            "transfer_date": parse_date_to_iso(_column(record, "date")),
            "price": parse_currency(_column(record, "price")),
            "sale_type": map_sale_type(_column(record, "qualification")) or "TypicallyMotivated",
            "book": book,
            "page": page,
            "instrument_number": _column(record, "instrument number"),
            "deed_code": None,
            "deed_type": "Miscellaneous",
            "document_type": "Title",
            "document_name": f"Deed {book}/{page}" if book and page else "Deed Document",
            "document_url": record.get("book/page url") or record.get("instrument number url"),
        })
    return sales


def _legal_description(soup):
    heading = _find_heading(soup, "Legal Description:")
    row = heading.find_next_sibling("div", class_="w3-cell-row") if heading else None
    if row is None:
        return None
    for column in row.find_all("div", class_="w3-container"):
        strong = column.find("strong")
        label = normalize_spaces(strong.get_text()) if strong else ""
        if re.search(r"long legal", label, re.IGNORECASE):
            text = normalize_spaces(column.get_text())
            return normalize_spaces(text[len(label):]) or None
    return None


def _general_parcel_information(soup):
    heading = _find_heading(soup, "General Parcel Information")
    block = heading.find_next_sibling("div", class_="w3-border") if heading else None
    result = {}
    if block is None:
        return result
    for row in block.find_all("div", class_="w3-row"):
        cells = row.find_all("div", class_="w3-cell")
        if len(cells) < 2:
            continue
        label = normalize_spaces(cells[0].get_text()).rstrip(":").lower()
        result[label] = normalize_spaces(cells[1].get_text()) or None
    return result


def extract_property(soup):
    land_rows = _captioned_rows(soup, "Land Information")
    use_code = _column(land_rows[0], "land use") if land_rows else None

    building_rows = _captioned_rows(soup, "Building Information")
    built_year = None
    livable = None
    if building_rows:
        year_text = _column(building_rows[0], "year built") or ""
        built_year = int(year_text) if re.match(r"^\d{4}$", year_text) else None
        livable = _column(building_rows[0], "a/c area", "living area")

    general = _general_parcel_information(soup)
    return {
        "parcel_identifier": extract_parcel_id(soup),
        "use_code": use_code,
        "legal_description": _legal_description(soup),
        "built_year": built_year,
        "livable_floor_area": livable,
        "total_area": None,
        "zoning": general.get("zoning code"),
    }


def extract_tax(soup):
    """Certified tax roll values; the year is taken from the table caption"""
    caption = _find_caption(soup, "Certified Tax Roll Values")
    year_match = TAX_YEAR_RE.search(normalize_spaces(caption.get_text())) if caption else None
    rows = _captioned_rows(soup, "Certified Tax Roll Values")
    if not year_match or not rows:
        return []
    record = rows[0]
    return [{
        "tax_year": int(year_match.group(1)),
        "property_land_amount": parse_currency(_column(record, "land")),
        "property_building_amount": parse_currency(_column(record, "building")),
        "property_market_value_amount": parse_currency(_column(record, "just", "market")),
        "property_assessed_value_amount": parse_currency(_column(record, "assessed")),
        "property_taxable_value_amount": parse_currency(_column(record, "taxable")),
    }]


def extract_lot(soup):
    """Lot size from the summed acreage of the land lines"""
    acreage = 0.0
    for record in _captioned_rows(soup, "Land Information"):
        acreage += parse_currency(_column(record, "acreage")) or 0.0
    if not acreage:
        return None
    return {"lot_size_acre": acreage, "lot_area_sqft": round(acreage * SQFT_PER_ACRE)}


def extract_layout_features(soup):
    buildings = []
    for record in _captioned_rows(soup, "Building Information"):
        area = parse_int(_column(record, "a/c area", "living area"))
        total = parse_int(_column(record, "total area"))
        buildings.append({
            "description": _column(record, "description", "building use") or "Building",
            "base_area": area,
            "actual_area": total or area,
        })

    features = []
    for record in _captioned_rows(soup, "Land Improvement Information"):
        description = _column(record, "description")
        if not description:
            continue
        width = parse_currency(_column(record, "width"))
        length = parse_currency(_column(record, "length"))
        units = parse_currency(_column(record, "units"))
        area = width * length if width and length else units
        features.append({
            "code": None,
            "description": description,
            "year_built": parse_int(_column(record, "year")),
            "value": None,
            "units": units,
            "width": width,
            "length": length,
            "area_square_feet": area,
        })

    return {"buildings": buildings, "features": features}
