"""
JSON schemas for the records written to data/.

Only the fields this extractor emits are described. Every record goes through
`validate_record` before it is written; a failure aborts the parcel.
"""
from jsonschema import validate, ValidationError

from .errors import SchemaError

NAME_PATTERN = r"^[A-Z][a-zA-Z\s\-',.]*$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

NULLABLE_STRING = {"type": ["string", "null"]}
NULLABLE_NUMBER = {"type": ["number", "null"]}
NULLABLE_NAME = {"type": ["string", "null"], "pattern": NAME_PATTERN}

SOURCE_HTTP_REQUEST = {
    "type": "object",
    "properties": {
        "method": {"type": "string", "enum": ["GET", "POST"]},
        "url": {"type": "string"},
        "multiValueQueryString": {"type": "object"},
    },
    "required": ["method", "url"],
}

IPLD_LINK = {
    "type": "object",
    "properties": {"/": {"type": "string", "pattern": r"^\./.+\.json$"}},
    "required": ["/"],
    "additionalProperties": False,
}

PERSON_SCHEMA = {
    "type": "object",
    "properties": {
        "source_http_request": SOURCE_HTTP_REQUEST,
        "request_identifier": NULLABLE_STRING,
        "first_name": {"type": "string", "pattern": NAME_PATTERN},
        "last_name": {"type": "string", "pattern": NAME_PATTERN},
        "middle_name": NULLABLE_NAME,
        "prefix_name": NULLABLE_STRING,
        "suffix_name": NULLABLE_STRING,
        "birth_date": {"type": "null"},
        "us_citizenship_status": {"type": "null"},
        "veteran_status": {"type": "null"},
    },
    "required": [
        "first_name", "last_name", "middle_name", "prefix_name", "suffix_name",
        "birth_date", "us_citizenship_status", "veteran_status",
    ],
}

COMPANY_SCHEMA = {
    "type": "object",
    "properties": {
        "source_http_request": SOURCE_HTTP_REQUEST,
        "request_identifier": NULLABLE_STRING,
        "name": {"type": "string", "minLength": 1},
    },
    "required": ["name"],
}

PROPERTY_SCHEMA = {
    "type": "object",
    "properties": {
        "source_http_request": SOURCE_HTTP_REQUEST,
        "request_identifier": NULLABLE_STRING,
        "parcel_identifier": {"type": "string", "minLength": 1},
        "property_type": {"type": "string", "enum": ["LandParcel", "Building", "Unit", "ManufacturedHome"]},
        "property_usage_type": NULLABLE_STRING,
        "structure_form": NULLABLE_STRING,
        "build_status": {"type": ["string", "null"], "enum": ["VacantLand", "Improved", "UnderConstruction", None]},
        "ownership_estate_type": NULLABLE_STRING,
        "number_of_units_type": NULLABLE_STRING,
        "property_legal_description_text": NULLABLE_STRING,
        "property_structure_built_year": {"type": ["integer", "null"]},
        "property_effective_built_year": {"type": ["integer", "null"]},
        "livable_floor_area": NULLABLE_STRING,
        "area_under_air": NULLABLE_STRING,
        "total_area": NULLABLE_STRING,
        "number_of_units": {"type": ["integer", "null"]},
        "subdivision": NULLABLE_STRING,
        "zoning": NULLABLE_STRING,
        "historic_designation": {"type": "boolean"},
    },
    "required": ["parcel_identifier", "property_type"],
}

ADDRESS_SCHEMA = {
    "type": "object",
    "properties": {
        "source_http_request": SOURCE_HTTP_REQUEST,
        "request_identifier": NULLABLE_STRING,
        "unnormalized_address": NULLABLE_STRING,
        "county_name": NULLABLE_STRING,
        "latitude": NULLABLE_NUMBER,
        "longitude": NULLABLE_NUMBER,
    },
    "required": ["unnormalized_address"],
}

SALES_HISTORY_SCHEMA = {
    "type": "object",
    "properties": {
        "source_http_request": SOURCE_HTTP_REQUEST,
        "request_identifier": NULLABLE_STRING,
        "ownership_transfer_date": {"type": ["string", "null"], "pattern": DATE_PATTERN},
        "purchase_price_amount": NULLABLE_NUMBER,
        "sale_type": NULLABLE_STRING,
    },
    "required": ["ownership_transfer_date", "purchase_price_amount"],
}

DEED_SCHEMA = {
    "type": "object",
    "properties": {
        "source_http_request": SOURCE_HTTP_REQUEST,
        "request_identifier": NULLABLE_STRING,
        "deed_type": {"type": "string"},
        "book": NULLABLE_STRING,
        "page": NULLABLE_STRING,
        "volume": NULLABLE_STRING,
        "instrument_number": NULLABLE_STRING,
    },
}

FILE_SCHEMA = {
    "type": "object",
    "properties": {
        "source_http_request": SOURCE_HTTP_REQUEST,
        "request_identifier": NULLABLE_STRING,
        "document_type": NULLABLE_STRING,
        "file_format": NULLABLE_STRING,
        "name": NULLABLE_STRING,
        "original_url": NULLABLE_STRING,
        "ipfs_url": NULLABLE_STRING,
    },
    "required": ["document_type", "name"],
}

LAYOUT_SCHEMA = {
    "type": "object",
    "properties": {
        "source_http_request": SOURCE_HTTP_REQUEST,
        "request_identifier": NULLABLE_STRING,
        "space_index": {"type": "integer", "minimum": 1},
        "space_type": {"type": "string"},
        "size_square_feet": NULLABLE_NUMBER,
        "is_exterior": {"type": ["boolean", "null"]},
    },
    "required": ["space_index", "space_type", "is_exterior"],
}

TAX_SCHEMA = {
    "type": "object",
    "properties": {
        "source_http_request": SOURCE_HTTP_REQUEST,
        "request_identifier": NULLABLE_STRING,
        "tax_year": {"type": "integer", "minimum": 1900},
        "property_land_amount": NULLABLE_NUMBER,
        "property_building_amount": NULLABLE_NUMBER,
        "property_market_value_amount": NULLABLE_NUMBER,
        "property_assessed_value_amount": NULLABLE_NUMBER,
        "property_taxable_value_amount": NULLABLE_NUMBER,
        "monthly_tax_amount": NULLABLE_NUMBER,
        "yearly_tax_amount": NULLABLE_NUMBER,
        "period_start_date": {"type": ["string", "null"], "pattern": DATE_PATTERN},
        "period_end_date": {"type": ["string", "null"], "pattern": DATE_PATTERN},
        "first_year_on_tax_roll": {"type": ["integer", "null"]},
        "first_year_building_on_tax_roll": {"type": ["integer", "null"]},
    },
    "required": ["tax_year", "property_market_value_amount", "property_assessed_value_amount"],
}

LOT_SCHEMA = {
    "type": "object",
    "properties": {
        "source_http_request": SOURCE_HTTP_REQUEST,
        "request_identifier": NULLABLE_STRING,
        "lot_type": {
            "type": ["string", "null"],
            "enum": ["GreaterThanOneQuarterAcre", "LessThanOrEqualToOneQuarterAcre", None],
        },
        "lot_area_sqft": {"type": ["integer", "null"], "minimum": 0},
        "lot_size_acre": NULLABLE_NUMBER,
    },
    "required": ["lot_type", "lot_area_sqft", "lot_size_acre"],
}

STRUCTURE_SCHEMA = {
    "type": "object",
    "properties": {
        "source_http_request": SOURCE_HTTP_REQUEST,
        "request_identifier": NULLABLE_STRING,
        "number_of_buildings": {"type": ["integer", "null"], "minimum": 0},
        "finished_base_area": {"type": ["integer", "null"]},
        "roof_age_years": {"type": ["integer", "null"]},
    },
    "required": ["number_of_buildings"],
}

UTILITY_SCHEMA = {
    "type": "object",
    "properties": {
        "source_http_request": SOURCE_HTTP_REQUEST,
        "request_identifier": NULLABLE_STRING,
        "public_utility_type": NULLABLE_STRING,
        "sewer_type": NULLABLE_STRING,
        "water_source_type": NULLABLE_STRING,
        "solar_panel_present": {"type": "boolean"},
        "solar_inverter_visible": {"type": "boolean"},
    },
    "required": ["sewer_type", "water_source_type", "solar_panel_present"],
}

RELATIONSHIP_SCHEMA = {
    "type": "object",
    "properties": {"from": IPLD_LINK, "to": IPLD_LINK},
    "required": ["from", "to"],
    "additionalProperties": False,
}

SCHEMAS = {
    "person": PERSON_SCHEMA,
    "company": COMPANY_SCHEMA,
    "property": PROPERTY_SCHEMA,
    "address": ADDRESS_SCHEMA,
    "mailing_address": ADDRESS_SCHEMA,
    "sales_history": SALES_HISTORY_SCHEMA,
    "deed": DEED_SCHEMA,
    "file": FILE_SCHEMA,
    "layout": LAYOUT_SCHEMA,
    "tax": TAX_SCHEMA,
    "lot": LOT_SCHEMA,
    "structure": STRUCTURE_SCHEMA,
    "utility": UTILITY_SCHEMA,
    "relationship": RELATIONSHIP_SCHEMA,
}


def validate_record(kind, record, file_name=None):
    """Validate one output record, raising SchemaError with the failing field path"""
    schema = SCHEMAS[kind]
    try:
        validate(instance=record, schema=schema)
    except ValidationError as e:
        field = ".".join(str(part) for part in e.absolute_path)
        location = f"{kind}.{field}" if field else kind
        raise SchemaError(f"{file_name or kind} failed validation: {e.message}", path=location) from e
    return record
