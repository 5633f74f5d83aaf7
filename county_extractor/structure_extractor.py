"""
Structure stage: owners/structure_data.json from the building rows and the
extra features that classify_feature puts in the "structure" bucket.
"""
import os
import logging

from bs4 import BeautifulSoup

from .layout_extractor import classify_feature
from .utils import ensure_directory, print_status, read_text, write_json

logger = logging.getLogger(__name__)

STRUCTURE_DATA_FILE = "structure_data.json"


def create_structure_object(number_of_buildings=None, finished_base_area=None):
    """Create a structure object with the counted fields set and all other fields as None"""
    return {
        "number_of_buildings": number_of_buildings,
        "finished_base_area": finished_base_area,
        "architectural_style_type": None,
        "attachment_type": None,
        "exterior_wall_material_primary": None,
        "exterior_wall_material_secondary": None,
        "exterior_wall_condition": None,
        "exterior_wall_insulation_type": None,
        "flooring_material_primary": None,
        "flooring_material_secondary": None,
        "subfloor_material": None,
        "flooring_condition": None,
        "interior_wall_structure_material": None,
        "interior_wall_surface_material_primary": None,
        "interior_wall_surface_material_secondary": None,
        "interior_wall_finish_primary": None,
        "interior_wall_finish_secondary": None,
        "interior_wall_condition": None,
        "roof_covering_material": None,
        "roof_underlayment_type": None,
        "roof_structure_material": None,
        "roof_design_type": None,
        "roof_condition": None,
        "roof_age_years": None,
        "gutters_material": None,
        "gutters_condition": None,
        "roof_material_type": None,
        "foundation_type": None,
        "foundation_material": None,
        "foundation_waterproofing": None,
        "foundation_condition": None,
        "ceiling_structure_material": None,
        "ceiling_surface_material": None,
        "ceiling_insulation_type": None,
        "ceiling_height_average": None,
        "ceiling_condition": None,
        "exterior_door_material": None,
        "interior_door_material": None,
        "window_frame_material": None,
        "window_glazing_type": None,
        "window_operation_type": None,
        "window_screen_material": None,
        "primary_framing_material": None,
        "secondary_framing_material": None,
        "structural_damage_indicators": None,
    }


def build_structure(features, parcel_id):
    """
    Args:
        features: {"buildings": [...], "features": [...]} from extract_layout_features
        parcel_id: parcel identifier, used for logging only

    Returns:
        {"structures": [structure object], "extra_structures": [...]}
    """
    buildings = features.get("buildings", [])
    structure = create_structure_object(
        number_of_buildings=len(buildings),
        finished_base_area=buildings[0].get("base_area") if buildings else None,
    )

    extra_structures = []
    for feature in features.get("features", []):
        if classify_feature(feature.get("description")) != "structure":
            continue
        extra_structures.append({
            "description": feature.get("description"),
            "feature_code": feature.get("code"),
            "feature_year_built": feature.get("year_built"),
            "feature_units": feature.get("units"),
            "feature_area_square_feet": feature.get("area_square_feet"),
        })

    logger.info(f"Parcel {parcel_id}: {len(buildings)} buildings, {len(extra_structures)} extra structures")
    return {"structures": [structure], "extra_structures": extra_structures}


def extract_structure_data(html, county):
    soup = BeautifulSoup(html, "html.parser")
    parcel_id = county.extract_parcel_id(soup)
    return {f"property_{parcel_id}": build_structure(county.extract_layout_features(soup), parcel_id)}


def write_structure_data(parcel_dir, county, settings=None):
    """Structure stage: input.html -> owners/structure_data.json"""
    html = read_text(os.path.join(parcel_dir, "input.html"))
    structure_data = extract_structure_data(html, county)

    owners_dir = os.path.join(parcel_dir, "owners")
    ensure_directory(owners_dir)
    out_path = os.path.join(owners_dir, STRUCTURE_DATA_FILE)
    write_json(out_path, structure_data)
    print_status(f"Structure data written to {out_path}")
    return structure_data
