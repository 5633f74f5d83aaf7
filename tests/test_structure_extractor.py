from county_extractor.counties import charlotte, columbia
from county_extractor.structure_extractor import (
    build_structure,
    create_structure_object,
    extract_structure_data,
    write_structure_data,
)

from conftest import CHARLOTTE_PARCEL, COLUMBIA_PARCEL, read_json


def test_structure_object_defaults():
    structure = create_structure_object(number_of_buildings=2, finished_base_area=900)
    assert (structure["number_of_buildings"], structure["finished_base_area"]) == (2, 900)
    others = {k: v for k, v in structure.items() if k not in ("number_of_buildings", "finished_base_area")}
    assert others and all(v is None for v in others.values())


def test_build_structure_keeps_only_structure_features():
    features = {
        "buildings": [
            {"description": "SFR", "base_area": 1400, "actual_area": 1600},
            {"description": "GUEST HOUSE", "base_area": 500, "actual_area": 500},
        ],
        "features": [
            {"description": "WELL", "code": "0190"},
            {"description": "CONC PATIO", "code": "0166"},
            {"description": "BARN,POLE", "code": "0040", "year_built": 1998, "units": 600.0, "area_square_feet": 600.0},
        ],
    }
    result = build_structure(features, "P1")
    assert (result["structures"][0]["number_of_buildings"], result["structures"][0]["finished_base_area"]) == (2, 1400)
    assert result["extra_structures"] == [{
        "description": "BARN,POLE",
        "feature_code": "0040",
        "feature_year_built": 1998,
        "feature_units": 600.0,
        "feature_area_square_feet": 600.0,
    }]


def test_vacant_parcel_has_no_buildings():
    result = build_structure({"buildings": [], "features": []}, "P1")
    assert result["structures"][0]["number_of_buildings"] == 0
    assert result["structures"][0]["finished_base_area"] is None
    assert result["extra_structures"] == []


def test_extract_structure_data_from_charlotte_page(charlotte_html):
    scope = extract_structure_data(charlotte_html, charlotte)[f"property_{CHARLOTTE_PARCEL}"]
    assert scope["structures"][0]["finished_base_area"] == 1820
    assert [s["description"] for s in scope["extra_structures"]] == ["SHED"]


def test_write_structure_data(make_parcel):
    parcel_dir = make_parcel("columbia_sample.html", COLUMBIA_PARCEL)
    written = write_structure_data(str(parcel_dir), columbia)
    assert read_json(parcel_dir / "owners" / "structure_data.json") == written
    scope = written[f"property_{COLUMBIA_PARCEL}"]
    assert scope["structures"][0]["number_of_buildings"] == 1
    assert [s["feature_code"] for s in scope["extra_structures"]] == ["0040"]
