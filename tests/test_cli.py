import json
import os

import pytest

from county_extractor.cli import main
from county_extractor.relationships import COUNTY_DATA_GROUP_CID

from conftest import CHARLOTTE_PARCEL, COLUMBIA_PARCEL, read_json


def last_json_line(output):
    return json.loads(output.strip().splitlines()[-1])


def test_run_writes_every_stage(make_parcel):
    parcel_dir = make_parcel("columbia_sample.html", COLUMBIA_PARCEL)
    assert main(["run", str(parcel_dir), "--county", "Columbia"]) == 0

    assert os.path.exists(parcel_dir / "owners" / "owner_data.json")
    assert os.path.exists(parcel_dir / "owners" / "layout_data.json")
    assert os.path.exists(parcel_dir / "owners" / "structure_data.json")
    assert os.path.exists(parcel_dir / "owners" / "utilities_data.json")
    assert os.path.exists(parcel_dir / "data" / "structure.json")
    assert os.path.exists(parcel_dir / "data" / "utility.json")
    assert os.path.exists(parcel_dir / "data" / "tax_2025.json")
    assert os.path.exists(parcel_dir / "data" / "person_1.json")
    assert os.path.exists(parcel_dir / "data" / f"{COUNTY_DATA_GROUP_CID}.json")


def test_single_stages(make_parcel):
    parcel_dir = make_parcel("charlotte_sample.html", CHARLOTTE_PARCEL)
    assert main(["owners", str(parcel_dir), "--county", "charlotte"]) == 0
    assert os.path.exists(parcel_dir / "owners" / "owner_data.json")
    assert not os.path.exists(parcel_dir / "data")

    assert main(["extract", str(parcel_dir), "--county", "CHARLOTTE", "--owner-fallback", "first_sale"]) == 0
    assert os.path.exists(parcel_dir / "data" / "relationship_sales_history_2_has_person_1.json")
    assert not os.path.exists(parcel_dir / "data" / f"{COUNTY_DATA_GROUP_CID}.json")


def test_county_from_unnormalized_address(make_parcel):
    parcel_dir = make_parcel(
        "charlotte_sample.html",
        CHARLOTTE_PARCEL,
        unnormalized={"full_address": "21345 MIDWAY BLVD, PORT CHARLOTTE, FL 33952", "county_jurisdiction": "Charlotte"},
    )
    assert main(["extract", str(parcel_dir)]) == 0
    assert read_json(parcel_dir / "data" / "address.json")["county_name"] == "Charlotte"


def test_owner_fallback_from_environment(make_parcel, monkeypatch):
    monkeypatch.setenv("OWNER_FALLBACK", "latest_sale")
    parcel_dir = make_parcel("charlotte_sample.html", CHARLOTTE_PARCEL)
    assert main(["run", str(parcel_dir), "--county", "Charlotte"]) == 0
    assert os.path.exists(parcel_dir / "data" / "relationship_sales_history_1_has_person_1.json")


def test_mapping_error_prints_payload_and_exits_1(make_parcel, charlotte_html, capsys):
    html = charlotte_html.replace("0100 - Single Family", "9999 - Space Station")
    parcel_dir = make_parcel("charlotte_sample.html", CHARLOTTE_PARCEL, html=html)
    assert main(["extract", str(parcel_dir), "--county", "Charlotte"]) == 1

    payload = last_json_line(capsys.readouterr().out)
    assert payload == {
        "type": "error",
        "message": "Unknown enum value 9999 - Space Station.",
        "path": "property.property_type",
    }


def test_unknown_county_exits_1(make_parcel, capsys):
    parcel_dir = make_parcel("charlotte_sample.html", CHARLOTTE_PARCEL)
    assert main(["owners", str(parcel_dir), "--county", "Atlantis"]) == 1
    payload = last_json_line(capsys.readouterr().out)
    assert payload["type"] == "error"
    assert "Atlantis" in payload["message"]


def test_missing_parcel_directory_exits_1(tmp_path, capsys):
    assert main(["extract", str(tmp_path / "nowhere"), "--county", "Columbia"]) == 1
    assert last_json_line(capsys.readouterr().out)["path"] == str(tmp_path / "nowhere")


def test_invalid_fallback_policy_is_rejected_by_the_parser(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main(["extract", str(tmp_path), "--owner-fallback", "every_sale"])
    assert excinfo.value.code == 2


def test_invalid_fallback_policy_in_environment_exits_1(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("OWNER_FALLBACK", "every_sale")
    assert main(["extract", str(tmp_path), "--county", "Columbia"]) == 1
    assert "every_sale" in last_json_line(capsys.readouterr().out)["message"]


def test_batch_continues_after_a_failed_parcel(make_parcel, tmp_path):
    parcel_dir = make_parcel("columbia_sample.html", COLUMBIA_PARCEL)
    seed_csv = tmp_path / "seed.csv"
    seed_csv.write_text(
        "parcel_id,county,method,url,source_identifier\n"
        "missing-parcel,Columbia,GET,https://columbia.floridapa.com/gis/,999\n"
        f"{COLUMBIA_PARCEL},Columbia,GET,https://columbia.floridapa.com/gis/,12345\n",
        encoding="utf-8",
    )
    assert main(["batch", str(seed_csv), "--root", str(parcel_dir.parent)]) == 1

    seed = read_json(parcel_dir / "property_seed.json")
    assert seed["request_identifier"] == "12345"
    assert seed["source_http_request"] == {"method": "GET", "url": "https://columbia.floridapa.com/gis/"}
    person = read_json(parcel_dir / "data" / "person_1.json")
    assert person["request_identifier"] == "12345"


def test_batch_success(make_parcel, tmp_path):
    parcel_dir = make_parcel("charlotte_sample.html", CHARLOTTE_PARCEL)
    seed_csv = tmp_path / "seed.csv"
    seed_csv.write_text(
        "parcel_id,county,method,url,source_identifier\n"
        f"{CHARLOTTE_PARCEL},Charlotte,GET,https://www.ccappraiser.com/Show_parcel.asp,{CHARLOTTE_PARCEL}\n",
        encoding="utf-8",
    )
    assert main(["batch", str(seed_csv), "--root", str(parcel_dir.parent)]) == 0
    assert os.path.exists(parcel_dir / "data" / f"{COUNTY_DATA_GROUP_CID}.json")


def test_structure_and_utility_stages(make_parcel):
    parcel_dir = make_parcel("columbia_sample.html", COLUMBIA_PARCEL)
    assert main(["structure", str(parcel_dir), "--county", "Columbia"]) == 0
    assert main(["utility", str(parcel_dir), "--county", "Columbia"]) == 0

    structure_scope = read_json(parcel_dir / "owners" / "structure_data.json")[f"property_{COLUMBIA_PARCEL}"]
    assert [s["description"] for s in structure_scope["extra_structures"]] == ["BARN,POLE"]
    utility_scope = read_json(parcel_dir / "owners" / "utilities_data.json")[f"property_{COLUMBIA_PARCEL}"]
    assert utility_scope["utilities"][0]["water_source_type"] == "Well"
    assert not os.path.exists(parcel_dir / "owners" / "owner_data.json")
