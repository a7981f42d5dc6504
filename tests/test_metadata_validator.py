from __future__ import annotations

from datetime import date

import pytest

from app.core.enums import AdConditionEnum, CategoryTypeEnum
from app.modules.ads.metadata import (
    JobMetadata,
    VehicleMetadata,
    listing_condition,
    normalize_metadata,
    parse_metadata,
    validate_metadata,
)
from app.modules.categories.schema import (
    JOBS_SCHEMA,
    REAL_ESTATE_SCHEMA,
    SERVICES_SCHEMA,
    VEHICLES_SCHEMA,
    get_schema,
)
from app.shared.exceptions import ValidationFailedException

TODAY = date(2026, 10, 19)


def _vehicle(**overrides) -> dict:
    payload = {
        "vehicleType": "car",
        "brand": "Volkswagen",
        "model": "Golf",
        "year": 2018,
        "mileage": 85000,
        "fuelType": "petrol",
        "transmission": "manual",
        "condition": "used",
        "damageStatus": "none",
        "postalCode": "10115",
        "contactName": "Anna",
        "contactPhone": "+4915112345678",
    }
    payload.update(overrides)
    return payload


def _apartment(**overrides) -> dict:
    payload = {
        "offerType": "rent",
        "propertyType": "apartment",
        "coldRent": 950,
        "livingArea": 62.5,
        "rooms": 2,
    }
    payload.update(overrides)
    return payload


def _codes(errors) -> dict[str, str]:
    return {error.field: error.code for error in errors}


def test_generic_categories_accept_any_metadata() -> None:
    assert get_schema(CategoryTypeEnum.MISC) is None
    assert get_schema(CategoryTypeEnum.PERSONAL_HOME) is None
    assert get_schema(None) is None
    assert get_schema("boats") is None
    assert validate_metadata(None, {"anything": ["goes"]}) == []


def test_valid_vehicle_payload_has_no_errors() -> None:
    assert validate_metadata(VEHICLES_SCHEMA, _vehicle(), today=TODAY) == []


def test_vehicle_year_may_be_next_year_but_not_later() -> None:
    assert validate_metadata(VEHICLES_SCHEMA, _vehicle(year=TODAY.year + 1), today=TODAY) == []

    errors = validate_metadata(VEHICLES_SCHEMA, _vehicle(year=TODAY.year + 2), today=TODAY)
    assert _codes(errors) == {"year": "out_of_range"}


def test_vehicle_year_below_lower_bound_is_rejected() -> None:
    errors = validate_metadata(VEHICLES_SCHEMA, _vehicle(year=1899), today=TODAY)
    assert _codes(errors) == {"year": "out_of_range"}


def test_all_errors_are_reported_in_declaration_order() -> None:
    payload = _vehicle(brand="", fuelType="steam", year="new", contactPhone="123")
    del payload["model"]

    errors = validate_metadata(VEHICLES_SCHEMA, payload, today=TODAY)

    assert [error.field for error in errors] == ["brand", "model", "year", "fuelType", "contactPhone"]
    assert [error.code for error in errors] == ["required", "required", "type", "choice", "too_short"]


def test_blank_and_null_values_count_as_missing() -> None:
    errors = validate_metadata(VEHICLES_SCHEMA, _vehicle(brand="   ", mileage=None), today=TODAY)
    assert _codes(errors) == {"brand": "required", "mileage": "required"}


def test_booleans_are_not_numbers() -> None:
    errors = validate_metadata(VEHICLES_SCHEMA, _vehicle(mileage=True), today=TODAY)
    assert _codes(errors) == {"mileage": "type"}


def test_inspection_date_accepts_month_or_full_date() -> None:
    assert validate_metadata(VEHICLES_SCHEMA, _vehicle(inspectionValidUntil="2027-03"), today=TODAY) == []
    assert validate_metadata(VEHICLES_SCHEMA, _vehicle(inspectionValidUntil="2027-03-31"), today=TODAY) == []

    errors = validate_metadata(VEHICLES_SCHEMA, _vehicle(inspectionValidUntil="03/2027"), today=TODAY)
    assert _codes(errors) == {"inspectionValidUntil": "format"}


def test_rent_requires_cold_rent_not_price() -> None:
    assert validate_metadata(REAL_ESTATE_SCHEMA, _apartment(), today=TODAY) == []

    payload = _apartment()
    del payload["coldRent"]
    errors = validate_metadata(REAL_ESTATE_SCHEMA, payload, today=TODAY)
    assert _codes(errors) == {"coldRent": "required"}


def test_sale_requires_price_not_cold_rent() -> None:
    payload = _apartment(offerType="sale")
    del payload["coldRent"]

    errors = validate_metadata(REAL_ESTATE_SCHEMA, payload, today=TODAY)
    assert _codes(errors) == {"price": "required"}

    assert validate_metadata(REAL_ESTATE_SCHEMA, {**payload, "price": 320000}, today=TODAY) == []


def test_invalid_offer_type_does_not_trigger_conditional_fields() -> None:
    payload = _apartment(offerType="lease")
    del payload["coldRent"]

    errors = validate_metadata(REAL_ESTATE_SCHEMA, payload, today=TODAY)
    assert _codes(errors) == {"offerType": "choice"}


def test_positive_fields_reject_zero() -> None:
    errors = validate_metadata(REAL_ESTATE_SCHEMA, _apartment(livingArea=0, rooms=0), today=TODAY)
    assert _codes(errors) == {"livingArea": "out_of_range", "rooms": "out_of_range"}


def test_real_estate_contact_email_is_checked() -> None:
    errors = validate_metadata(REAL_ESTATE_SCHEMA, _apartment(contactEmail="not-an-email"), today=TODAY)
    assert _codes(errors) == {"contactEmail": "format"}


def test_services_price_required_unless_negotiable() -> None:
    payload = {
        "serviceCategory": "repairs",
        "pricingType": "hourly",
        "contactName": "Max",
        "contactPhone": "0301234567",
    }
    assert _codes(validate_metadata(SERVICES_SCHEMA, payload, today=TODAY)) == {"price": "required"}
    assert validate_metadata(SERVICES_SCHEMA, {**payload, "pricingType": "negotiable"}, today=TODAY) == []


def test_job_salary_to_must_not_be_lower_than_salary_from() -> None:
    payload = {
        "jobTitle": "Backend developer",
        "jobDescription": "Build and run our marketplace APIs.",
        "jobType": "full-time",
        "industry": "IT",
        "companyName": "AdBoard",
        "salaryFrom": 4000,
        "salaryTo": 3500,
    }
    errors = validate_metadata(JOBS_SCHEMA, payload, today=TODAY)
    assert _codes(errors) == {"salaryTo": "out_of_range"}

    assert validate_metadata(JOBS_SCHEMA, {**payload, "salaryTo": 5000}, today=TODAY) == []


def test_non_object_metadata_is_rejected_as_a_whole() -> None:
    errors = validate_metadata(JOBS_SCHEMA, ["jobTitle"], today=TODAY)
    assert _codes(errors) == {"metadata": "type"}


def test_parse_metadata_returns_typed_variant() -> None:
    parsed = parse_metadata(CategoryTypeEnum.VEHICLES, _vehicle(powerHP=110, color="blue"))

    assert isinstance(parsed, VehicleMetadata)
    assert parsed.vehicle_type == "car"
    assert parsed.power_hp == 110
    assert parsed.mileage == 85000


def test_parse_metadata_is_none_for_generic_types() -> None:
    assert parse_metadata(CategoryTypeEnum.MISC, {"size": "XL"}) is None
    assert parse_metadata(None, {"size": "XL"}) is None


def test_normalize_metadata_keeps_wire_keys_and_drops_blanks() -> None:
    normalized = normalize_metadata(
        CategoryTypeEnum.JOBS,
        {
            "jobTitle": "Barista",
            "jobDescription": "Morning shifts in a busy cafe.",
            "jobType": "part-time",
            "industry": "Hospitality",
            "companyName": "Bean There",
            "contactName": "",
        },
    )

    assert normalized == {
        "jobTitle": "Barista",
        "jobDescription": "Morning shifts in a busy cafe.",
        "jobType": "part-time",
        "industry": "Hospitality",
        "companyName": "Bean There",
    }
    assert JobMetadata.model_validate(normalized).job_type == "part-time"


def test_normalize_metadata_passes_generic_payload_through() -> None:
    assert normalize_metadata(CategoryTypeEnum.MISC, {"size": "XL"}) == {"size": "XL"}
    assert normalize_metadata(None, None) == {}


def test_attribute_name_keys_are_ignored_by_variants() -> None:
    payload = _vehicle(power_hp=-5, engine_size=-1, vehicle_type="van")

    assert validate_metadata(VEHICLES_SCHEMA, payload, today=TODAY) == []
    parsed = parse_metadata(CategoryTypeEnum.VEHICLES, payload)
    assert parsed.power_hp is None
    assert parsed.engine_size is None
    assert parsed.vehicle_type == "car"
    assert normalize_metadata(CategoryTypeEnum.VEHICLES, payload) == _vehicle()


def test_normalize_metadata_reports_type_errors_as_field_errors() -> None:
    with pytest.raises(ValidationFailedException) as exc:
        normalize_metadata(CategoryTypeEnum.VEHICLES, _vehicle(year="soon"))

    assert [error.field for error in exc.value.errors] == ["year"]


def test_listing_condition_follows_vehicle_metadata() -> None:
    assert listing_condition("new", None) == AdConditionEnum.NEW
    assert listing_condition("used", None) == AdConditionEnum.USED
    assert listing_condition("used", AdConditionEnum.LIKE_NEW) == AdConditionEnum.LIKE_NEW
    assert listing_condition("new", AdConditionEnum.USED) is None
