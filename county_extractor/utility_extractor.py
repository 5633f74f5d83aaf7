import os
import re
import logging

from bs4 import BeautifulSoup

from .layout_extractor import classify_feature
from .utils import ensure_directory, print_status, read_text, write_json

logger = logging.getLogger(__name__)

UTILITY_DATA_FILE = "utilities_data.json"

# (pattern, field, value); every matching rule applies, the first value per field is kept
UTILITY_RULES = [
    (re.compile(r"SEPTIC", re.IGNORECASE), "sewer_type", "Septic"),
    (re.compile(r"\bWELL\b", re.IGNORECASE), "water_source_type", "Well"),
    (re.compile(r"IRRIGATION|SPRINK", re.IGNORECASE), "public_utility_type", "WaterAvailable"),
    (re.compile(r"ELECTRIC|POWER|TRANSFORMER|GENERATOR", re.IGNORECASE), "public_utility_type", "ElectricityAvailable"),
    (re.compile(r"\bGAS\b", re.IGNORECASE), "public_utility_type", "NaturalGasAvailable"),
    (re.compile(r"WATER", re.IGNORECASE), "public_utility_type", "WaterAvailable"),
]


def create_utility_object():
    return {
        "cooling_system_type": None,
        "heating_system_type": None,
        "public_utility_type": None,
        "sewer_type": None,
        "water_source_type": None,
        "plumbing_system_type": None,
        "plumbing_system_type_other_description": None,
        "electrical_panel_capacity": None,
        "electrical_wiring_type": None,
        "hvac_condensing_unit_present": None,
        "electrical_wiring_type_other_description": None,
        "solar_panel_present": False,
        "solar_panel_type": None,
        "solar_panel_type_other_description": None,
        "smart_home_features": None,
        "smart_home_features_other_description": None,
        "hvac_unit_condition": None,
        "solar_inverter_visible": False,
        "hvac_unit_issues": None,
    }


def build_utility(features, parcel_id):
    """Fill the utility object from the features in the "utility" bucket"""
    utility = create_utility_object()
    extra_utilities = []
    for feature in features.get("features", []):
        description = feature.get("description") or ""
        if classify_feature(description) != "utility":
            continue
        extra_utilities.append({
            "description": description,
            "feature_code": feature.get("code"),
            "feature_year_built": feature.get("year_built"),
            "feature_units": feature.get("units"),
        })
        for pattern, field, value in UTILITY_RULES:
            if pattern.search(description) and utility[field] is None:
                utility[field] = value

    logger.info(f"Parcel {parcel_id}: {len(extra_utilities)} utility features")
    return {"utilities": [utility], "extra_utilities": extra_utilities}


def extract_utility_data(html, county):
    soup = BeautifulSoup(html, "html.parser")
    parcel_id = county.extract_parcel_id(soup)
    return {f"property_{parcel_id}": build_utility(county.extract_layout_features(soup), parcel_id)}


def write_utility_data(parcel_dir, county, settings=None):
    """Utility stage: input.html -> owners/utilities_data.json"""
    html = read_text(os.path.join(parcel_dir, "input.html"))
    utility_data = extract_utility_data(html, county)

    owners_dir = os.path.join(parcel_dir, "owners")
    ensure_directory(owners_dir)
    out_path = os.path.join(owners_dir, UTILITY_DATA_FILE)
    write_json(out_path, utility_data)
    print_status(f"Utility data written to {out_path}")
    return utility_data
