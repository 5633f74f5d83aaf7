import os

import pytest

from county_extractor.counties import columbia
from county_extractor.data_extractor import extract_parcel
from county_extractor.errors import InputError
from county_extractor.layout_extractor import write_layout_data
from county_extractor.owners.processor import write_owner_data
from county_extractor.relationships import (
    COUNTY_DATA_GROUP_CID,
    build_relationship_files,
    create_county_data_group,
    write_county_data_group,
)
from county_extractor.settings import Settings
from county_extractor.structure_extractor import write_structure_data
from county_extractor.utility_extractor import write_utility_data

from conftest import COLUMBIA_PARCEL, read_json


def test_county_data_group_categories():
    group = create_county_data_group([
        "relationship_person_1_property.json",
        "relationship_company_1_property.json",
        "relationship_property_address.json",
        "relationship_property_sales_history_1.json",
        "relationship_property_layout_1.json",
        "relationship_property_structure.json",
        "relationship_sales_history_1_has_person_1.json",
        "relationship_sales_history_1_has_company_1.json",
        "relationship_sales_history_1_has_deed_1.json",
        "relationship_deed_1_has_file_1.json",
        "relationship_company_1_has_mailing_address.json",
    ])
    relationships = group["relationships"]
    assert group["label"] == "County"
    assert relationships["person_has_property"] == [{"/": "./relationship_person_1_property.json"}]
    assert relationships["company_has_property"] == [{"/": "./relationship_company_1_property.json"}]
    assert relationships["property_has_address"] == {"/": "./relationship_property_address.json"}
    assert relationships["property_has_sales_history"] == [{"/": "./relationship_property_sales_history_1.json"}]
    assert relationships["property_has_structure"] == {"/": "./relationship_property_structure.json"}
    assert relationships["sales_history_has_person"] == [{"/": "./relationship_sales_history_1_has_person_1.json"}]
    assert relationships["sales_history_has_company"] == [{"/": "./relationship_sales_history_1_has_company_1.json"}]
    assert relationships["sales_history_has_deed"] == [{"/": "./relationship_sales_history_1_has_deed_1.json"}]
    assert relationships["deed_has_file"] == [{"/": "./relationship_deed_1_has_file_1.json"}]
    assert relationships["company_has_mailing_address"] == [{"/": "./relationship_company_1_has_mailing_address.json"}]
    assert relationships["property_has_utility"] is None
    assert relationships["person_has_mailing_address"] is None


def test_missing_property_file_is_reported(tmp_path):
    files, errors = build_relationship_files(str(tmp_path))
    assert files == []
    assert len(errors) == 1 and "property.json" in errors[0]
    with pytest.raises(InputError):
        write_county_data_group(str(tmp_path))


def test_full_columbia_relationship_stage(make_parcel):
    parcel_dir = make_parcel(
        "columbia_sample.html",
        COLUMBIA_PARCEL,
        unnormalized={"full_address": "456 COUNTY RD 245, LAKE CITY, FL 32024", "county_jurisdiction": "Columbia"},
    )
    settings = Settings()
    write_owner_data(str(parcel_dir), columbia, settings)
    write_layout_data(str(parcel_dir), columbia, settings)
    write_structure_data(str(parcel_dir), columbia, settings)
    write_utility_data(str(parcel_dir), columbia, settings)
    result = extract_parcel(str(parcel_dir), columbia, settings)

    group = write_county_data_group(result.data_dir)
    assert read_json(os.path.join(result.data_dir, f"{COUNTY_DATA_GROUP_CID}.json")) == group

    relationships = group["relationships"]
    assert len(relationships["person_has_property"]) == 2
    assert len(relationships["company_has_property"]) == 1
    assert relationships["property_has_address"] == {"/": "./relationship_property_address.json"}
    assert len(relationships["property_has_sales_history"]) == 2
    assert len(relationships["property_has_layout"]) == 3
    assert len(relationships["sales_history_has_person"]) == 2
    assert len(relationships["sales_history_has_company"]) == 1
    assert len(relationships["sales_history_has_deed"]) == 2
    assert len(relationships["deed_has_file"]) == 2
    assert len(relationships["person_has_mailing_address"]) == 2
    assert relationships["property_has_tax"] == [{"/": "./relationship_property_tax_2025.json"}]
    assert relationships["property_has_lot"] == {"/": "./relationship_property_lot.json"}
    assert relationships["property_has_structure"] == {"/": "./relationship_property_structure.json"}
    assert relationships["property_has_utility"] == {"/": "./relationship_property_utility.json"}

    assert read_json(os.path.join(result.data_dir, "relationship_property_layout_2.json")) == {
        "from": {"/": "./property.json"},
        "to": {"/": "./layout_2.json"},
    }
    assert read_json(os.path.join(result.data_dir, "relationship_person_1_property.json")) == {
        "from": {"/": "./person_1.json"},
        "to": {"/": "./property.json"},
    }
