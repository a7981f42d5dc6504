"""Category schemas."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import CategoryTypeEnum
from app.modules.categories.schema import FieldRule, MetadataSchema


class CategoryCreate(BaseModel):
    """Category create payload."""

    name: str = Field(min_length=1, max_length=120)
    icon: str | None = Field(default=None, max_length=64)
    category_type: CategoryTypeEnum | None = None
    parent_id: UUID | None = None


class CategoryUpdate(BaseModel):
    """Partial category update; explicit nulls clear a value."""

    name: str | None = Field(default=None, min_length=1, max_length=120)
    icon: str | None = Field(default=None, max_length=64)
    category_type: CategoryTypeEnum | None = None
    parent_id: UUID | None = None


class CategoryRead(BaseModel):
    """Category response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    icon: str | None
    category_type: CategoryTypeEnum | None
    parent_id: UUID | None
    created_at: datetime
    updated_at: datetime


class RequiredWhenRead(BaseModel):
    field: str
    values: list[str]


class FieldRuleRead(BaseModel):
    """Metadata field rule exposed for form rendering."""

    name: str
    kind: str
    required: bool
    required_when: RequiredWhenRead | None = None
    choices: list[str] = Field(default_factory=list)
    min_value: float | None = None
    exclusive_min: bool = False
    max_value: float | None = None
    min_length: int | None = None
    not_less_than: str | None = None

    @classmethod
    def from_rule(cls, rule: FieldRule, today: date) -> "FieldRuleRead":
        max_value = rule.max_value
        if rule.max_year_offset is not None:
            max_value = today.year + rule.max_year_offset
        required_when = None
        if rule.required_when is not None:
            discriminant, values = rule.required_when
            required_when = RequiredWhenRead(field=discriminant, values=sorted(values))
        return cls(
            name=rule.name,
            kind=rule.kind,
            required=rule.required,
            required_when=required_when,
            choices=list(rule.choices),
            min_value=rule.min_value,
            exclusive_min=rule.exclusive_min,
            max_value=max_value,
            min_length=rule.min_length,
            not_less_than=rule.not_less_than,
        )


class CategorySchemaRead(BaseModel):
    """Resolved metadata schema of a category."""

    category_id: UUID
    category_type: CategoryTypeEnum | None
    rules: list[FieldRuleRead]

    @classmethod
    def build(
        cls,
        category_id: UUID,
        category_type: CategoryTypeEnum | None,
        schema: MetadataSchema | None,
        today: date,
    ) -> "CategorySchemaRead":
        rules = [FieldRuleRead.from_rule(rule, today) for rule in schema.fields] if schema else []
        return cls(category_id=category_id, category_type=category_type, rules=rules)
