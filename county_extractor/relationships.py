import os
import logging

from .errors import InputError
from .schemas import validate_record
from .utils import print_status, write_json

logger = logging.getLogger(__name__)

COUNTY_DATA_GROUP_CID = "bafkreigsqoofbrni7fye3dtsjuvtwv4nmmdzrppvblhzlsq3xpucn5daeq"

# (file prefix, relationship entity name) for property -> entity edges
PROPERTY_ENTITY_PREFIXES = [
    ("address", "address"),
    ("lot", "lot"),
    ("tax", "tax"),
    ("sales", "sales"),
    ("layout", "layout"),
    ("flood_storm_information", "flood_storm_information"),
    ("structure", "structure"),
    ("utility", "utility"),
]


def _write_relationship(folder_path, rel_filename, from_file, to_file):
    relationship_data = {
        "from": {"/": f"./{from_file}"},
        "to": {"/": f"./{to_file}"},
    }
    validate_record("relationship", relationship_data, file_name=rel_filename)
    write_json(os.path.join(folder_path, rel_filename), relationship_data)
    logger.info(f"     📝 Created {rel_filename}")
    return rel_filename


def build_relationship_files(folder_path):
    """
    Build property-level relationship files based on the files in the folder.
    Sale, deed and mailing edges already written by the extractor are picked up as they are.
    Returns: (relationship_files, errors)
    """
    relationship_files = []
    errors = []

    json_files = sorted(f for f in os.listdir(folder_path) if f.endswith(".json"))
    relationship_files.extend(
        f for f in json_files
        if f.startswith("relationship_sales_history") or f.startswith("relationship_deed")
        or f.endswith("_has_mailing_address.json")
    )

    person_files = [f for f in json_files if f.startswith("person")]
    company_files = [f for f in json_files if f.startswith("company")]
    property_files = [f for f in json_files if f.startswith("property")]

    if not property_files:
        error_msg = "❌ No property.json file found - you must create one"
        logger.error(error_msg)
        errors.append(error_msg)
        return relationship_files, errors

    property_file = property_files[0]

    for owner_file in person_files + company_files:
        rel_filename = f"relationship_{owner_file.replace('.json', '')}_property.json"
        relationship_files.append(_write_relationship(folder_path, rel_filename, owner_file, property_file))

    for prefix, entity_type in PROPERTY_ENTITY_PREFIXES:
        for file in (f for f in json_files if f.startswith(prefix)):
            # tax_1.json -> _1, structure.json -> ""
            suffix = file.replace(".json", "")[len(entity_type):]
            rel_filename = f"relationship_property_{entity_type}{suffix}.json"
            relationship_files.append(_write_relationship(folder_path, rel_filename, property_file, file))

    return relationship_files, errors


def create_county_data_group(relationship_files):
    """
    Create the county data group structure based on relationship files
    """
    all_relationships = {
        "person_has_property": None,
        "company_has_property": None,
        "property_has_address": None,
        "property_has_lot": None,
        "property_has_tax": None,
        "property_has_sales_history": None,
        "property_has_layout": None,
        "property_has_flood_storm_information": None,
        "property_has_file": None,
        "property_has_structure": None,
        "property_has_utility": None,
        "sales_history_has_person": None,
        "sales_history_has_company": None,
        "sales_history_has_deed": None,
        "deed_has_file": None,
        "person_has_mailing_address": None,
        "company_has_mailing_address": None,
    }
    list_keys = {
        "person_has_property", "company_has_property", "property_has_tax", "property_has_sales_history",
        "property_has_layout", "sales_history_has_person", "sales_history_has_company",
        "sales_history_has_deed", "deed_has_file", "person_has_mailing_address", "company_has_mailing_address",
    }
    collected = {key: [] for key in list_keys}

    for rel_file in relationship_files:
        ipld_ref = {"/": f"./{rel_file}"}

        if rel_file.startswith("relationship_sales_history"):
            if "_has_person_" in rel_file:
                collected["sales_history_has_person"].append(ipld_ref)
            elif "_has_company_" in rel_file:
                collected["sales_history_has_company"].append(ipld_ref)
            elif "_has_deed_" in rel_file:
                collected["sales_history_has_deed"].append(ipld_ref)
        elif rel_file.startswith("relationship_deed") and "_has_file_" in rel_file:
            collected["deed_has_file"].append(ipld_ref)
        elif rel_file.endswith("_has_mailing_address.json"):
            kind = "person" if rel_file.startswith("relationship_person") else "company"
            collected[f"{kind}_has_mailing_address"].append(ipld_ref)
        elif rel_file.startswith("relationship_person") and rel_file.endswith("_property.json"):
            collected["person_has_property"].append(ipld_ref)
        elif rel_file.startswith("relationship_company") and rel_file.endswith("_property.json"):
            collected["company_has_property"].append(ipld_ref)
        elif "property_address" in rel_file:
            all_relationships["property_has_address"] = ipld_ref
        elif "property_lot" in rel_file:
            all_relationships["property_has_lot"] = ipld_ref
        elif "property_tax" in rel_file:
            collected["property_has_tax"].append(ipld_ref)
        elif "property_sales" in rel_file:
            collected["property_has_sales_history"].append(ipld_ref)
        elif "property_layout" in rel_file:
            collected["property_has_layout"].append(ipld_ref)
        elif "property_flood_storm_information" in rel_file:
            all_relationships["property_has_flood_storm_information"] = ipld_ref
        elif "property_utility" in rel_file:
            all_relationships["property_has_utility"] = ipld_ref
        elif "property_structure" in rel_file:
            all_relationships["property_has_structure"] = ipld_ref

    for key, refs in collected.items():
        if refs:
            all_relationships[key] = refs

    return {"label": "County", "relationships": all_relationships}


def write_county_data_group(folder_path):
    """Relationship stage: property-level edges plus the County data group file"""
    relationship_files, errors = build_relationship_files(folder_path)
    if errors:
        raise InputError(errors[0], path=os.path.join(folder_path, "property.json"))

    county_data_group = create_county_data_group(relationship_files)
    county_file_path = os.path.join(folder_path, f"{COUNTY_DATA_GROUP_CID}.json")
    write_json(county_file_path, county_data_group)
    print_status(f"✅ Created {COUNTY_DATA_GROUP_CID}.json with {len(relationship_files)} relationship files")
    return county_data_group
