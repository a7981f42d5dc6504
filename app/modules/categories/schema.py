"""Metadata schemas registered per category type.

A schema is an ordered tuple of field rules; the order is the order in which
validation errors are reported. Category types without an entry here (personal
and home goods, miscellaneous) accept any metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from app.core.enums import CategoryTypeEnum


class FieldKind(StrEnum):
    """Value shape accepted by a metadata field."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    CHOICE = "choice"
    DATE = "date"
    DATE_OR_MONTH = "date_or_month"
    EMAIL = "email"


@dataclass(frozen=True, slots=True)
class FieldRule:
    """Constraints for one metadata key.

    ``required_when`` makes the field required only when another field holds
    one of the listed values; ``max_year_offset`` bounds an integer by the
    current year plus the offset.
    """

    name: str
    kind: FieldKind
    required: bool = False
    required_when: tuple[str, frozenset[str]] | None = None
    choices: tuple[str, ...] = ()
    min_value: float | None = None
    exclusive_min: bool = False
    max_value: float | None = None
    max_year_offset: int | None = None
    min_length: int | None = None
    not_less_than: str | None = None

    @property
    def is_conditional(self) -> bool:
        return self.required_when is not None


@dataclass(frozen=True, slots=True)
class MetadataSchema:
    """Field rules for one category type."""

    category_type: CategoryTypeEnum
    fields: tuple[FieldRule, ...]

    def field(self, name: str) -> FieldRule | None:
        for rule in self.fields:
            if rule.name == name:
                return rule
        return None

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(rule.name for rule in self.fields)

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(rule.name for rule in self.fields if rule.required)


def _choice(name: str, *choices: str, required: bool = False) -> FieldRule:
    return FieldRule(name=name, kind=FieldKind.CHOICE, required=required, choices=choices)


def _text(name: str, *, required: bool = False, min_length: int | None = None) -> FieldRule:
    return FieldRule(name=name, kind=FieldKind.STRING, required=required, min_length=min_length)


def _positive(name: str, *, required: bool = False, when: tuple[str, frozenset[str]] | None = None) -> FieldRule:
    return FieldRule(
        name=name,
        kind=FieldKind.NUMBER,
        required=required,
        required_when=when,
        min_value=0,
        exclusive_min=True,
    )


def _non_negative(name: str, *, kind: FieldKind = FieldKind.NUMBER, required: bool = False) -> FieldRule:
    return FieldRule(name=name, kind=kind, required=required, min_value=0)


def _flag(name: str) -> FieldRule:
    return FieldRule(name=name, kind=FieldKind.BOOLEAN)


REAL_ESTATE_SCHEMA = MetadataSchema(
    category_type=CategoryTypeEnum.REAL_ESTATE,
    fields=(
        _choice("offerType", "rent", "sale", required=True),
        _choice("propertyType", "apartment", "house", "commercial", "land", "parking", required=True),
        _positive("price", when=("offerType", frozenset({"sale"}))),
        _positive("coldRent", when=("offerType", frozenset({"rent"}))),
        _positive("livingArea", required=True),
        FieldRule(name="rooms", kind=FieldKind.INTEGER, required=True, min_value=0, exclusive_min=True),
        _text("postalCode", min_length=5),
        _text("district"),
        _non_negative("additionalCosts"),
        _non_negative("deposit"),
        FieldRule(name="floor", kind=FieldKind.INTEGER),
        _non_negative("totalFloors", kind=FieldKind.INTEGER),
        FieldRule(name="yearBuilt", kind=FieldKind.INTEGER, min_value=1800, max_year_offset=5),
        FieldRule(name="availableFrom", kind=FieldKind.DATE),
        _flag("furnished"),
        _flag("balcony"),
        _flag("elevator"),
        _flag("parkingIncluded"),
        _flag("cellar"),
        _text("contactName", min_length=2),
        _text("contactPhone", min_length=10),
        FieldRule(name="contactEmail", kind=FieldKind.EMAIL),
    ),
)

VEHICLES_SCHEMA = MetadataSchema(
    category_type=CategoryTypeEnum.VEHICLES,
    fields=(
        _choice("vehicleType", "car", "motorcycle", "van", "bike", required=True),
        _text("brand", required=True, min_length=2),
        _text("model", required=True, min_length=1),
        FieldRule(name="year", kind=FieldKind.INTEGER, required=True, min_value=1900, max_year_offset=1),
        _non_negative("mileage", required=True),
        _choice("fuelType", "petrol", "diesel", "electric", "hybrid", required=True),
        _choice("transmission", "manual", "automatic", required=True),
        _choice("condition", "new", "used", required=True),
        _choice("damageStatus", "none", "accident", required=True),
        _text("postalCode", required=True, min_length=5),
        _text("contactName", required=True, min_length=2),
        _text("contactPhone", required=True, min_length=10),
        _non_negative("powerHP"),
        FieldRule(name="inspectionValidUntil", kind=FieldKind.DATE_OR_MONTH),
        _non_negative("engineSize", kind=FieldKind.INTEGER),
        _non_negative("doors", kind=FieldKind.INTEGER),
        _non_negative("seats", kind=FieldKind.INTEGER),
        _non_negative("gears", kind=FieldKind.INTEGER),
        _non_negative("loadCapacity"),
        _choice("bikeType", "normal", "electric"),
        _text("frameSize"),
        _text("wheelSize"),
        _text("brakeType"),
    ),
)

SERVICES_SCHEMA = MetadataSchema(
    category_type=CategoryTypeEnum.SERVICES,
    fields=(
        _choice(
            "serviceCategory",
            "home_services",
            "transport",
            "repairs",
            "it_design",
            "education",
            "personal_services",
            required=True,
        ),
        _choice("pricingType", "fixed", "hourly", "negotiable", required=True),
        _positive("price", when=("pricingType", frozenset({"fixed", "hourly"}))),
        _text("contactName", required=True, min_length=2),
        _text("contactPhone", required=True, min_length=10),
        _non_negative("serviceRadius"),
        _non_negative("experienceYears", kind=FieldKind.INTEGER),
        _text("certificates"),
        FieldRule(name="contactEmail", kind=FieldKind.EMAIL),
    ),
)

JOBS_SCHEMA = MetadataSchema(
    category_type=CategoryTypeEnum.JOBS,
    fields=(
        _text("jobTitle", required=True, min_length=3),
        _text("jobDescription", required=True, min_length=10),
        _choice("jobType", "full-time", "part-time", "mini-job", "freelance", "internship", required=True),
        _text("industry", required=True, min_length=2),
        _text("companyName", required=True, min_length=2),
        _choice("experienceLevel", "junior", "mid", "senior"),
        _text("educationRequired"),
        _text("languageRequired"),
        _flag("remotePossible"),
        _non_negative("salaryFrom"),
        FieldRule(name="salaryTo", kind=FieldKind.NUMBER, min_value=0, not_less_than="salaryFrom"),
        _choice("salaryType", "hourly", "monthly"),
        _text("contactName", min_length=2),
        FieldRule(name="contactEmail", kind=FieldKind.EMAIL),
    ),
)

SCHEMAS: dict[CategoryTypeEnum, MetadataSchema] = {
    CategoryTypeEnum.REAL_ESTATE: REAL_ESTATE_SCHEMA,
    CategoryTypeEnum.VEHICLES: VEHICLES_SCHEMA,
    CategoryTypeEnum.SERVICES: SERVICES_SCHEMA,
    CategoryTypeEnum.JOBS: JOBS_SCHEMA,
}


def get_schema(category_type: CategoryTypeEnum | str | None) -> MetadataSchema | None:
    """Registered schema for a type; None for generic types and unknown values."""
    if category_type is None:
        return None
    try:
        return SCHEMAS.get(CategoryTypeEnum(category_type))
    except ValueError:
        return None
