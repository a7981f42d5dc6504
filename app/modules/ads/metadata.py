"""Category metadata validation and typed variants.

``validate_metadata`` is the single exhaustive check of an ad's metadata bag
against the schema of its category type. Accepted payloads are then normalised
through the variant model registered for the same type.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from datetime import date
from typing import Any, Literal

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from app.core.enums import AdConditionEnum, CategoryTypeEnum
from app.modules.categories.schema import FieldKind, FieldRule, MetadataSchema
from app.shared.exceptions import FieldError, ValidationFailedException
from app.shared.utils import utc_now

Number = int | float

_MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def is_absent(value: Any) -> bool:
    """Missing, null and blank strings all count as not provided."""
    return value is None or (isinstance(value, str) and not value.strip())


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _is_integer(value: Any) -> bool:
    if not _is_number(value):
        return False
    return isinstance(value, int) or float(value).is_integer()


def _format_bound(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _check_bounds(rule: FieldRule, value: float, today: date) -> FieldError | None:
    if rule.min_value is not None:
        if rule.exclusive_min and value <= rule.min_value:
            return FieldError(rule.name, f"Must be greater than {_format_bound(rule.min_value)}", "out_of_range")
        if not rule.exclusive_min and value < rule.min_value:
            return FieldError(rule.name, f"Must be at least {_format_bound(rule.min_value)}", "out_of_range")

    upper = rule.max_value
    if rule.max_year_offset is not None:
        upper = today.year + rule.max_year_offset
    if upper is not None and value > upper:
        return FieldError(rule.name, f"Must not be greater than {_format_bound(upper)}", "out_of_range")
    return None


def _check_date(rule: FieldRule, value: Any) -> FieldError | None:
    if isinstance(value, str):
        if rule.kind == FieldKind.DATE_OR_MONTH and _MONTH_PATTERN.match(value):
            return None
        try:
            date.fromisoformat(value)
            return None
        except ValueError:
            pass
    expected = "YYYY-MM-DD or YYYY-MM" if rule.kind == FieldKind.DATE_OR_MONTH else "YYYY-MM-DD"
    return FieldError(rule.name, f"Must be a date in {expected} format", "format")


def _check_value(rule: FieldRule, value: Any, today: date) -> FieldError | None:
    if rule.kind == FieldKind.NUMBER:
        if not _is_number(value):
            return FieldError(rule.name, "Must be a number", "type")
        return _check_bounds(rule, value, today)

    if rule.kind == FieldKind.INTEGER:
        if not _is_integer(value):
            return FieldError(rule.name, "Must be a whole number", "type")
        return _check_bounds(rule, value, today)

    if rule.kind == FieldKind.BOOLEAN:
        if not isinstance(value, bool):
            return FieldError(rule.name, "Must be true or false", "type")
        return None

    if rule.kind == FieldKind.CHOICE:
        if not isinstance(value, str) or value not in rule.choices:
            return FieldError(rule.name, f"Must be one of: {', '.join(rule.choices)}", "choice")
        return None

    if rule.kind in (FieldKind.DATE, FieldKind.DATE_OR_MONTH):
        return _check_date(rule, value)

    if not isinstance(value, str):
        return FieldError(rule.name, "Must be a text value", "type")

    if rule.kind == FieldKind.EMAIL:
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            return FieldError(rule.name, "Must be a valid email address", "format")
        return None

    if rule.min_length is not None and len(value.strip()) < rule.min_length:
        return FieldError(rule.name, f"Must be at least {rule.min_length} characters", "too_short")
    return None


def _conditionally_required(rule: FieldRule, accepted: Mapping[str, Any]) -> bool:
    if rule.required_when is None:
        return False
    discriminant, values = rule.required_when
    # Unconfirmed discriminant: its own error is the only one reported.
    if discriminant not in accepted:
        return False
    return accepted[discriminant] in values


def validate_metadata(
    schema: MetadataSchema | None,
    payload: Any,
    *,
    today: date | None = None,
) -> list[FieldError]:
    """Return field errors in declaration order; empty means acceptable."""
    if schema is None:
        return []
    if not isinstance(payload, Mapping):
        return [FieldError("metadata", "Metadata must be an object", "type")]

    today = today or utc_now().date()
    errors: list[FieldError] = []
    accepted: dict[str, Any] = {}

    for rule in schema.fields:
        value = payload.get(rule.name)
        if is_absent(value):
            if rule.required or _conditionally_required(rule, accepted):
                errors.append(FieldError(rule.name, "This field is required", "required"))
            continue

        error = _check_value(rule, value, today)
        if error is None and rule.not_less_than is not None:
            floor = accepted.get(rule.not_less_than)
            if floor is not None and value < floor:
                error = FieldError(rule.name, f"Must not be lower than {rule.not_less_than}", "out_of_range")

        if error is not None:
            errors.append(error)
            continue
        accepted[rule.name] = value

    return errors


class _MetadataVariant(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, extra="allow")


class RealEstateMetadata(_MetadataVariant):
    offer_type: Literal["rent", "sale"]
    property_type: Literal["apartment", "house", "commercial", "land", "parking"]
    price: Number | None = None
    cold_rent: Number | None = None
    living_area: Number
    rooms: int
    postal_code: str | None = None
    district: str | None = None
    additional_costs: Number | None = None
    deposit: Number | None = None
    floor: int | None = None
    total_floors: int | None = None
    year_built: int | None = None
    available_from: str | None = None
    furnished: bool | None = None
    balcony: bool | None = None
    elevator: bool | None = None
    parking_included: bool | None = None
    cellar: bool | None = None
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None


class VehicleMetadata(_MetadataVariant):
    vehicle_type: Literal["car", "motorcycle", "van", "bike"]
    brand: str
    model: str
    year: int
    mileage: Number
    fuel_type: Literal["petrol", "diesel", "electric", "hybrid"]
    transmission: Literal["manual", "automatic"]
    condition: Literal["new", "used"]
    damage_status: Literal["none", "accident"]
    postal_code: str
    contact_name: str
    contact_phone: str
    power_hp: Number | None = Field(default=None, alias="powerHP")
    inspection_valid_until: str | None = None
    engine_size: int | None = None
    doors: int | None = None
    seats: int | None = None
    gears: int | None = None
    load_capacity: Number | None = None
    bike_type: Literal["normal", "electric"] | None = None
    frame_size: str | None = None
    wheel_size: str | None = None
    brake_type: str | None = None


class ServiceMetadata(_MetadataVariant):
    service_category: Literal[
        "home_services",
        "transport",
        "repairs",
        "it_design",
        "education",
        "personal_services",
    ]
    pricing_type: Literal["fixed", "hourly", "negotiable"]
    price: Number | None = None
    contact_name: str
    contact_phone: str
    service_radius: Number | None = None
    experience_years: int | None = None
    certificates: str | None = None
    contact_email: str | None = None


class JobMetadata(_MetadataVariant):
    job_title: str
    job_description: str
    job_type: Literal["full-time", "part-time", "mini-job", "freelance", "internship"]
    industry: str
    company_name: str
    experience_level: Literal["junior", "mid", "senior"] | None = None
    education_required: str | None = None
    language_required: str | None = None
    remote_possible: bool | None = None
    salary_from: Number | None = None
    salary_to: Number | None = None
    salary_type: Literal["hourly", "monthly"] | None = None
    contact_name: str | None = None
    contact_email: str | None = None


AdMetadata = RealEstateMetadata | VehicleMetadata | ServiceMetadata | JobMetadata

METADATA_VARIANTS: dict[CategoryTypeEnum, type[_MetadataVariant]] = {
    CategoryTypeEnum.REAL_ESTATE: RealEstateMetadata,
    CategoryTypeEnum.VEHICLES: VehicleMetadata,
    CategoryTypeEnum.SERVICES: ServiceMetadata,
    CategoryTypeEnum.JOBS: JobMetadata,
}


def _shadow_keys(variant: type[_MetadataVariant]) -> frozenset[str]:
    """Python attribute names that differ from the wire key of the same field."""
    return frozenset(name for name, field in variant.model_fields.items() if field.alias and field.alias != name)


def parse_metadata(category_type: CategoryTypeEnum | None, payload: Mapping[str, Any]) -> AdMetadata | None:
    """Typed view of an already validated payload; None for generic types.

    Only wire (camelCase) keys feed the typed fields. Keys spelled like a field's
    attribute name (``power_hp``) are dropped so that nothing reaches a field
    without having passed ``validate_metadata`` under its wire key.
    """
    if category_type is None:
        return None
    variant = METADATA_VARIANTS.get(category_type)
    if variant is None:
        return None
    shadowed = _shadow_keys(variant)
    cleaned = {
        key: value
        for key, value in payload.items()
        if key not in shadowed and not is_absent(value)
    }
    return variant.model_validate(cleaned)


def _variant_field_errors(exc: ValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "metadata"
        errors.append(FieldError(location, str(error.get("msg", "Invalid value")), "invalid"))
    return errors


def normalize_metadata(category_type: CategoryTypeEnum | None, payload: Mapping[str, Any] | None) -> dict:
    """JSON-ready metadata to persist; generic payloads are stored as given."""
    if payload is None:
        return {}
    try:
        parsed = parse_metadata(category_type, payload)
    except ValidationError as exc:
        raise ValidationFailedException(_variant_field_errors(exc)) from exc
    if parsed is None:
        return dict(payload)
    return parsed.model_dump(mode="json", by_alias=True, exclude_none=True)


# The vehicle form only knows new/used; LIKE_NEW refines "used".
LISTING_CONDITIONS: dict[str, tuple[AdConditionEnum, ...]] = {
    "new": (AdConditionEnum.NEW,),
    "used": (AdConditionEnum.USED, AdConditionEnum.LIKE_NEW),
}


def listing_condition(metadata_condition: Any, requested: AdConditionEnum | None) -> AdConditionEnum | None:
    """Listing condition agreeing with the vehicle metadata; None when they disagree."""
    allowed = LISTING_CONDITIONS.get(metadata_condition, ())
    if requested is None:
        return allowed[0] if allowed else None
    return requested if requested in allowed else None
