import os
import re
import logging

from bs4 import BeautifulSoup

from .utils import ensure_directory, print_status, read_text, write_json

logger = logging.getLogger(__name__)

LAYOUT_DATA_FILE = "layout_data.json"

BUILDING_SPACE_TYPE = "Building"

# Ordered (pattern, space type) rules; longer phrases precede the words they contain
SPACE_TYPE_RULES = [
    (re.compile(r"SCREEN(ED)?\s+PORCH|SCR\s+PORCH"), "Screened Porch"),
    (re.compile(r"COURTYARD"), "Courtyard"),
    (re.compile(r"COURT\b"), "Courtyard"),
    (re.compile(r"PATIO"), "Patio"),
    (re.compile(r"PORCH"), "Porch"),
    (re.compile(r"DECK"), "Deck"),
    (re.compile(r"POOL\s+HOUSE"), "Pool House"),
    (re.compile(r"POOL"), "Pool Area"),
    (re.compile(r"GAZEBO"), "Gazebo"),
    (re.compile(r"PERGOLA"), "Pergola"),
    (re.compile(r"BALCONY"), "Balcony"),
    (re.compile(r"TERRACE"), "Terrace"),
    (re.compile(r"LANAI"), "Lanai"),
    (re.compile(r"SHED"), "Shed"),
    (re.compile(r"CARPORT"), "Carport"),
    (re.compile(r"GARAGE"), "Detached Garage"),
]

# Checked in this order; the first bucket with a matching pattern wins
FEATURE_BUCKETS = [
    ("utility", [
        r"UTILITY", r"WELL", r"SEPTIC", r"IRRIGATION", r"SPRINK", r"PUMP", r"POWER",
        r"ELECTRIC", r"TRANSFORMER", r"GENERATOR", r"WATER", r"GAS",
    ]),
    ("layout", [
        r"PAVE?MENT", r"PAVERS?", r"PATIO", r"PORCH", r"DECK", r"DRIVE", r"SIDE ?WALK",
        r"SLAB", r"COURT", r"TRACK", r"CONCRETE", r"ASPHALT", r"PARKING", r"APRO?N",
        r"POOL", r"GAZEBO", r"PERGOLA", r"LANAI",
    ]),
    ("structure", [
        r"BUILDING", r"BARN", r"GARAGE", r"CARPORT", r"CANOPY", r"SHED", r"STORAGE",
        r"PAVILION", r"CABIN", r"GREENHOUSE", r"DOCK", r"FENCE", r"HOUSE",
    ]),
]
FEATURE_BUCKETS = [(bucket, [re.compile(p, re.IGNORECASE) for p in patterns]) for bucket, patterns in FEATURE_BUCKETS]


def classify_space_type(description):
    """Map an extra-feature description to a layout space type, or None"""
    text = (description or "").upper()
    for pattern, space_type in SPACE_TYPE_RULES:
        if pattern.search(text):
            return space_type
    return None


def classify_feature(description):
    """Bucket a feature as "utility", "layout" or "structure" (the default)"""
    text = description or ""
    for bucket, patterns in FEATURE_BUCKETS:
        if any(pattern.search(text) for pattern in patterns):
            return bucket
    return "structure"


def create_layout_object(space_type, space_index, size_square_feet=None, is_exterior=False):
    """Create a layout object with the specified space_type and all other fields as None"""
    return {
        "space_index": space_index,
        "space_type": space_type,
        "flooring_material_type": None,
        "size_square_feet": size_square_feet,
        "floor_level": None,
        "has_windows": None,
        "window_design_type": None,
        "window_material_type": None,
        "window_treatment_type": None,
        "is_finished": None,
        "furnished": None,
        "paint_condition": None,
        "flooring_wear": None,
        "clutter_level": None,
        "visible_damage": None,
        "countertop_material": None,
        "cabinet_style": None,
        "fixture_finish_quality": None,
        "design_style": None,
        "natural_light_quality": None,
        "decor_elements": None,
        "pool_type": None,
        "pool_equipment": None,
        "spa_type": None,
        "safety_features": None,
        "view_type": None,
        "lighting_features": None,
        "condition_issues": None,
        "is_exterior": is_exterior,
        "pool_condition": None,
        "pool_surface_type": None,
        "pool_water_quality": None,
    }


def build_layouts(features, parcel_id):
    """
    Build layout objects from a county's building rows and extra features.

    Args:
        features: {"buildings": [...], "features": [...]} from extract_layout_features
        parcel_id: parcel identifier, used for logging only

    Returns:
        List of layout dicts with 1-based space_index in emission order
    """
    layouts = []
    for building in features.get("buildings", []):
        area = building.get("actual_area") or building.get("base_area")
        layouts.append(create_layout_object(BUILDING_SPACE_TYPE, len(layouts) + 1, size_square_feet=area))

    skipped = 0
    for feature in features.get("features", []):
        description = feature.get("description")
        if classify_feature(description) != "layout":
            continue
        space_type = classify_space_type(description)
        if space_type is None:
            skipped += 1
            continue
        layouts.append(
            create_layout_object(
                space_type,
                len(layouts) + 1,
                size_square_feet=feature.get("area_square_feet"),
                is_exterior=True,
            )
        )

    logger.info(f"Parcel {parcel_id}: {len(layouts)} layouts, {skipped} layout features without a space type")
    return layouts


def extract_layout_data(html, county):
    soup = BeautifulSoup(html, "html.parser")
    parcel_id = county.extract_parcel_id(soup)
    layouts = build_layouts(county.extract_layout_features(soup), parcel_id)
    return {f"property_{parcel_id}": {"layouts": layouts}}


def write_layout_data(parcel_dir, county, settings=None):
    """Layout stage: input.html -> owners/layout_data.json"""
    html = read_text(os.path.join(parcel_dir, "input.html"))
    layout_data = extract_layout_data(html, county)

    owners_dir = os.path.join(parcel_dir, "owners")
    ensure_directory(owners_dir)
    out_path = os.path.join(owners_dir, LAYOUT_DATA_FILE)
    write_json(out_path, layout_data)
    print_status(f"Layout data written to {out_path}")
    return layout_data
