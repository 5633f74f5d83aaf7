"""
Data extraction stage.

Reads input.html, the owners/ sidecars, property_seed.json and
unnormalized_address.json from a parcel directory and writes the Lexicon
records to <parcel>/data/. Records are validated before they are written;
owner data-quality problems are collected into invalid_owners.json instead of
failing the run.
"""
import os
import copy
import glob
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from bs4 import BeautifulSoup

from .mappings import require_mapping
from .owners.linker import CURRENT, link_sales
from .owners.models import COMPANY, PERSON, Diagnostics, Relationship, SaleRecord
from .owners.registry import EntityRegistry
from .schemas import validate_record
from .utils import ensure_directory, load_json, print_status, read_text, write_json

logger = logging.getLogger(__name__)

DATA_DIR = "data"
INVALID_OWNERS_FILE = "invalid_owners.json"
MAILING_ADDRESS_FILE = "mailing_address.json"


@dataclass
class ExtractionResult:
    parcel_id: str
    data_dir: str
    files: List[str] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    registry: Optional[EntityRegistry] = None


class RecordWriter:
    """Validates and writes records into one data directory, remembering what it wrote"""

    def __init__(self, data_dir, source_http_request, request_identifier):
        self.data_dir = data_dir
        self.source_http_request = source_http_request
        self.request_identifier = request_identifier
        self.files = []

    def stamp(self, record):
        """Add the provenance fields carried by most records"""
        stamped = {
            "source_http_request": copy.deepcopy(self.source_http_request),
            "request_identifier": self.request_identifier,
        }
        stamped.update(record)
        return stamped

    def write(self, kind, file_name, record):
        validate_record(kind, record, file_name=file_name)
        write_json(os.path.join(self.data_dir, file_name), record)
        self.files.append(file_name)
        logger.info(f"Wrote {file_name}")
        return file_name

    def write_relationship(self, relationship):
        return self.write("relationship", relationship.file_name, relationship.to_dict())


def _clear_json_files(directory):
    for path in glob.glob(os.path.join(directory, "*.json")):
        os.remove(path)


def _property_scope(data, parcel_ids):
    """The "property_<id>" entry of a sidecar, trying each candidate id"""
    if not isinstance(data, dict):
        return None
    for parcel_id in parcel_ids:
        if parcel_id and f"property_{parcel_id}" in data:
            return data[f"property_{parcel_id}"]
    return None


def _source_http_request(seed, unnormalized, county):
    for source in (seed, unnormalized):
        if isinstance(source, dict) and isinstance(source.get("source_http_request"), dict):
            request = copy.deepcopy(source["source_http_request"])
            request.setdefault("method", "GET")
            request.setdefault("url", county.SOURCE_URL)
            return request
    return {"method": "GET", "url": county.SOURCE_URL}


def build_property_record(property_info, county, parcel_identifier):
    """Property record; an unmapped use code raises MappingError"""
    attrs = require_mapping(property_info.get("use_code"), county.lookup_use_code, "property.property_type")
    return {
        "parcel_identifier": parcel_identifier,
        "property_type": attrs["property_type"],
        "property_usage_type": attrs["property_usage_type"],
        "structure_form": attrs["structure_form"],
        "build_status": attrs["build_status"],
        "ownership_estate_type": attrs["ownership_estate_type"],
        "number_of_units_type": attrs["number_of_units_type"],
        "property_legal_description_text": property_info.get("legal_description"),
        "property_structure_built_year": property_info.get("built_year"),
        "property_effective_built_year": property_info.get("built_year"),
        "livable_floor_area": property_info.get("livable_floor_area"),
        "area_under_air": property_info.get("livable_floor_area"),
        "total_area": property_info.get("total_area"),
        "number_of_units": None,
        "subdivision": None,
        "zoning": property_info.get("zoning"),
        "historic_designation": False,
    }


def build_person_record(person):
    return {
        "birth_date": None,
        "first_name": person.first_name,
        "last_name": person.last_name,
        "middle_name": person.middle_name,
        "prefix_name": person.prefix_name,
        "suffix_name": person.suffix_name,
        "us_citizenship_status": None,
        "veteran_status": None,
    }


def register_timeline(timeline, registry):
    """Register every owner of every date, in sidecar order"""
    for owners in timeline.values():
        for owner in owners or []:
            registry.register_owner(owner)
    logger.info(f"Registry holds {len(registry.persons)} persons and {len(registry.companies)} companies")


def write_owner_records(writer, registry):
    for ref, person in registry.entries(PERSON):
        writer.write("person", ref.file_name, writer.stamp(build_person_record(person)))
    for ref, company in registry.entries(COMPANY):
        writer.write("company", ref.file_name, {"name": company.name})


def write_mailing_address(writer, timeline, registry):
    """mailing_address.json plus an edge from every current owner that resolves"""
    current = timeline.get(CURRENT) or []
    mailing = next((o.get("mailing_address") for o in current if isinstance(o, dict) and o.get("mailing_address")), None)
    if not mailing:
        return []

    writer.write(
        "mailing_address",
        MAILING_ADDRESS_FILE,
        writer.stamp({"unnormalized_address": mailing, "latitude": None, "longitude": None}),
    )
    relationships = []
    seen = set()
    for owner in current:
        ref = registry.lookup(owner)
        if ref is None or ref in seen:
            continue
        seen.add(ref)
        relationship = Relationship(
            from_path=ref.rel_path,
            to_path=f"./{MAILING_ADDRESS_FILE}",
            file_name=f"relationship_{ref.kind}_{ref.index}_has_mailing_address.json",
        )
        writer.write_relationship(relationship)
        relationships.append(relationship)
    return relationships


def write_sales(writer, sales_rows):
    """sales_history/deed/file records and their edges; returns the SaleRecords"""
    sales = []
    for index, row in enumerate(sales_rows, start=1):
        sale = SaleRecord(transfer_date=row.get("transfer_date"), price=row.get("price"), index=index)
        sales.append(sale)
        writer.write(
            "sales_history",
            sale.file_name,
            writer.stamp({
                "ownership_transfer_date": sale.transfer_date,
                "purchase_price_amount": sale.price,
                "sale_type": row.get("sale_type"),
            }),
        )

        deed = {
            "book": row.get("book"),
            "page": row.get("page"),
            "volume": None,
            "instrument_number": row.get("instrument_number"),
        }
        if row.get("deed_type"):
            deed["deed_type"] = row["deed_type"]
        deed_name = f"deed_{index}.json"
        writer.write("deed", deed_name, writer.stamp(deed))

        file_name = f"file_{index}.json"
        writer.write(
            "file",
            file_name,
            writer.stamp({
                "document_type": row.get("document_type"),
                "file_format": None,
                "name": row.get("document_name"),
                "original_url": row.get("document_url"),
                "ipfs_url": None,
            }),
        )

        writer.write_relationship(Relationship(
            from_path=sale.rel_path,
            to_path=f"./{deed_name}",
            file_name=f"relationship_sales_history_{index}_has_deed_{index}.json",
        ))
        writer.write_relationship(Relationship(
            from_path=f"./{deed_name}",
            to_path=f"./{file_name}",
            file_name=f"relationship_deed_{index}_has_file_{index}.json",
        ))
    return sales


def build_tax_record(tax_info):
    return {
        "tax_year": tax_info["tax_year"],
        "property_land_amount": tax_info.get("property_land_amount"),
        "property_building_amount": tax_info.get("property_building_amount"),
        "property_market_value_amount": tax_info.get("property_market_value_amount"),
        "property_assessed_value_amount": tax_info.get("property_assessed_value_amount"),
        "property_taxable_value_amount": tax_info.get("property_taxable_value_amount"),
        "monthly_tax_amount": None,
        "yearly_tax_amount": None,
        "period_start_date": None,
        "period_end_date": None,
        "first_year_on_tax_roll": None,
        "first_year_building_on_tax_roll": None,
    }


def build_lot_record(lot_info):
    acres = lot_info.get("lot_size_acre")
    lot_type = None
    if acres is not None:
        lot_type = "GreaterThanOneQuarterAcre" if acres > 0.25 else "LessThanOrEqualToOneQuarterAcre"
    return {
        "lot_type": lot_type,
        "lot_length_feet": None,
        "lot_width_feet": None,
        "lot_area_sqft": lot_info.get("lot_area_sqft"),
        "lot_size_acre": acres,
        "landscaping_features": None,
        "view": None,
        "fencing_type": None,
        "fence_height": None,
        "fence_length": None,
        "driveway_material": None,
        "driveway_condition": None,
        "lot_condition_issues": None,
    }


def write_tax_and_lot(writer, soup, county):
    """tax_<year>.json per valued tax year and lot.json when the page gives a lot size"""
    for tax_info in county.extract_tax(soup):
        amounts = [value for key, value in tax_info.items() if key != "tax_year"]
        if all(value is None for value in amounts):
            logger.warning(f"Skipping tax year {tax_info['tax_year']}: no amounts")
            continue
        writer.write("tax", f"tax_{tax_info['tax_year']}.json", writer.stamp(build_tax_record(tax_info)))

    lot_info = county.extract_lot(soup)
    if lot_info:
        writer.write("lot", "lot.json", writer.stamp(build_lot_record(lot_info)))


def write_sidecar_records(writer, parcel_dir, parcel_ids):
    """layout_{i}.json plus the first structure and utility object of the earlier stages"""
    owners_dir = os.path.join(parcel_dir, "owners")

    layout_scope = _property_scope(load_json(os.path.join(owners_dir, "layout_data.json")), parcel_ids) or {}
    for index, layout in enumerate(layout_scope.get("layouts", []), start=1):
        record = writer.stamp(dict(layout, space_index=layout.get("space_index") or index))
        writer.write("layout", f"layout_{index}.json", record)

    for sidecar, kind, key in (
        ("structure_data.json", "structure", "structures"),
        ("utilities_data.json", "utility", "utilities"),
    ):
        scope = _property_scope(load_json(os.path.join(owners_dir, sidecar)), parcel_ids) or {}
        records = scope.get(key) or []
        if records:
            writer.write(kind, f"{kind}.json", writer.stamp(records[0]))


def extract_parcel(parcel_dir, county, settings):
    """
    Extract one parcel directory into <parcel_dir>/data.

    Args:
        parcel_dir: directory holding input.html and the sidecar files
        county: county module from counties.get_county
        settings: Settings (owner fallback policy, digit repair)

    Returns:
        ExtractionResult describing the written files
    """
    html = read_text(os.path.join(parcel_dir, "input.html"))
    soup = BeautifulSoup(html, "html.parser")
    seed = load_json(os.path.join(parcel_dir, "property_seed.json")) or {}
    unnormalized = load_json(os.path.join(parcel_dir, "unnormalized_address.json")) or {}

    parcel_id = county.extract_parcel_id(soup)
    seed_id = seed.get("parcel_id")
    if parcel_id == "unknown_id" and seed_id:
        parcel_id = str(seed_id)
    parcel_ids = [parcel_id, seed_id, seed.get("request_identifier"), unnormalized.get("request_identifier")]
    request_identifier = str(seed.get("request_identifier") or parcel_id)

    data_dir = os.path.join(parcel_dir, DATA_DIR)
    ensure_directory(data_dir)
    _clear_json_files(data_dir)
    writer = RecordWriter(data_dir, _source_http_request(seed, unnormalized, county), request_identifier)

    property_info = county.extract_property(soup)
    parcel_identifier = property_info.get("parcel_identifier") or parcel_id
    writer.write("property", "property.json", writer.stamp(build_property_record(property_info, county, parcel_identifier)))

    if unnormalized.get("full_address") or unnormalized.get("unnormalized_address"):
        writer.write("address", "address.json", writer.stamp({
            "unnormalized_address": unnormalized.get("full_address") or unnormalized.get("unnormalized_address"),
            "county_name": unnormalized.get("county_jurisdiction"),
            "latitude": unnormalized.get("latitude"),
            "longitude": unnormalized.get("longitude"),
        }))

    owner_data = load_json(os.path.join(parcel_dir, "owners", "owner_data.json")) or {}
    owner_scope = _property_scope(owner_data, parcel_ids) or {}
    timeline = owner_scope.get("owners_by_date") or {}
    if not timeline:
        logger.warning(f"Parcel {parcel_id}: no owners_by_date in owner sidecar")

    registry = EntityRegistry(repair_digits=settings.repair_digits_for(county))
    register_timeline(timeline, registry)
    write_owner_records(writer, registry)

    result = ExtractionResult(parcel_id=parcel_id, data_dir=data_dir, registry=registry)
    result.relationships.extend(write_mailing_address(writer, timeline, registry))

    sales = write_sales(writer, county.extract_sales(soup))
    sale_owner_relationships = link_sales(sales, timeline, registry, settings.owner_fallback_for(county))
    for relationship in sale_owner_relationships:
        writer.write_relationship(relationship)
    result.relationships.extend(sale_owner_relationships)

    write_tax_and_lot(writer, soup, county)
    write_sidecar_records(writer, parcel_dir, parcel_ids)

    result.diagnostics.extend(owner_scope.get("invalid_owners") or owner_data.get("invalid_owners"))
    result.diagnostics.extend(registry.diagnostics.to_list())
    write_json(os.path.join(parcel_dir, INVALID_OWNERS_FILE), result.diagnostics.to_list())

    result.files = list(writer.files)
    print_status(
        f"Parcel {parcel_id}: {len(result.files)} records, "
        f"{len(sales)} sales, {len(sale_owner_relationships)} sale-owner links, "
        f"{len(result.diagnostics)} invalid owners"
    )
    return result
