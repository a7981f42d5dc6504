from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from app.core.enums import (
    AccessPathEnum,
    AdConditionEnum,
    AdStatusEnum,
    CategoryTypeEnum,
    ModerationActionEnum,
    RoleEnum,
)
from app.modules.ads.schemas import AdCreate, AdUpdate
from app.modules.ads.service import AdsService
from app.modules.identity.principal import Principal
from app.modules.permissions.registry import ADS_APPROVE, ADS_DELETE, ADS_EDIT
from app.shared.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationFailedException,
)

VEHICLE_METADATA = {
    "vehicleType": "car",
    "brand": "Skoda",
    "model": "Octavia",
    "year": 2019,
    "mileage": 64000,
    "fuelType": "diesel",
    "transmission": "automatic",
    "condition": "used",
    "damageStatus": "none",
    "postalCode": "80331",
    "contactName": "Jonas",
    "contactPhone": "+4917612345678",
}


@dataclass
class FakeAd:
    id: UUID
    title: str
    description: str
    price: Decimal
    category_id: UUID
    user_id: UUID
    status: AdStatusEnum
    ad_metadata: dict
    city_id: UUID | None = None
    condition: AdConditionEnum | None = None
    show_email: bool = False
    show_phone: bool = True
    views: int = 0
    version: int = 1
    deleted_at: datetime | None = None
    deleted_by_id: UUID | None = None


class FakeAdsRepository:
    def __init__(self) -> None:
        self.ads: dict[UUID, FakeAd] = {}
        self.list_calls: list[dict] = []

    async def create_ad(self, **fields) -> FakeAd:
        ad = FakeAd(id=uuid4(), **fields)
        self.ads[ad.id] = ad
        return ad

    async def get_ad_by_id(self, ad_id: UUID, *, include_deleted: bool = False) -> FakeAd | None:
        ad = self.ads.get(ad_id)
        if ad is None or (ad.deleted_at is not None and not include_deleted):
            return None
        return ad

    async def save(self, ad: FakeAd) -> FakeAd:
        ad.version += 1
        return ad

    async def soft_delete(self, ad_id: UUID, *, deleted_by_id: UUID, deleted_at: datetime) -> bool:
        ad = self.ads.get(ad_id)
        if ad is None or ad.deleted_at is not None:
            return False
        ad.deleted_at = deleted_at
        ad.deleted_by_id = deleted_by_id
        return True

    async def list_public_ads(self, **kwargs):
        self.list_calls.append(kwargs)
        return [], 0

    async def list_ads(self, **kwargs):
        self.list_calls.append(kwargs)
        return list(self.ads.values()), len(self.ads)


@dataclass
class FakeCategory:
    id: UUID
    name: str
    category_type: CategoryTypeEnum | None = None
    parent_id: UUID | None = None


class FakeCategoriesRepository:
    def __init__(self) -> None:
        self.categories: dict[UUID, FakeCategory] = {}

    def add(self, name: str, category_type=None, parent: FakeCategory | None = None) -> FakeCategory:
        category = FakeCategory(id=uuid4(), name=name, category_type=category_type, parent_id=parent and parent.id)
        self.categories[category.id] = category
        return category

    async def get_category_by_id(self, category_id: UUID, *, include_deleted: bool = False):
        return self.categories.get(category_id)

    async def list_categories(self, *, parent_id=None, roots_only=False):
        return [item for item in self.categories.values() if item.parent_id == parent_id]


@dataclass
class FakeAuditRepository:
    events: list[dict] = field(default_factory=list)

    async def create_moderation_event(self, **kwargs) -> dict:
        self.events.append(kwargs)
        return kwargs


class FakeNotifier:
    async def send(self, owner_id: UUID, ad_id: UUID, reason: str) -> bool:
        return True


@pytest.fixture
def categories() -> FakeCategoriesRepository:
    return FakeCategoriesRepository()


@pytest.fixture
def ads() -> FakeAdsRepository:
    return FakeAdsRepository()


@pytest.fixture
def audit() -> FakeAuditRepository:
    return FakeAuditRepository()


@pytest.fixture
def service(ads, categories, audit) -> AdsService:
    return AdsService(
        repository=ads,
        categories_repository=categories,
        audit_repository=audit,
        notifier=FakeNotifier(),
    )


def _user() -> Principal:
    return Principal.build(uuid4(), RoleEnum.USER)


def _create_payload(category_id: UUID, **overrides) -> AdCreate:
    data = {
        "title": "Family car",
        "description": "Well maintained, full service history.",
        "price": Decimal("12500"),
        "category_id": category_id,
        "metadata": dict(VEHICLE_METADATA),
    }
    data.update(overrides)
    return AdCreate(**data)


@pytest.mark.asyncio
async def test_create_ad_in_subcategory_validates_inherited_schema(service, categories, audit) -> None:
    root = categories.add("Vehicles", CategoryTypeEnum.VEHICLES)
    cars = categories.add("Cars", parent=root)
    owner = _user()

    ad = await service.create_ad(_create_payload(cars.id, condition=AdConditionEnum.USED), owner)

    assert ad.status == AdStatusEnum.PENDING_APPROVAL
    assert ad.user_id == owner.id
    assert ad.ad_metadata["brand"] == "Skoda"
    assert audit.events[0]["action"] == ModerationActionEnum.CREATE
    assert audit.events[0]["access_path"] == AccessPathEnum.OWNER


@pytest.mark.asyncio
async def test_create_ad_reports_every_metadata_error(service, categories) -> None:
    root = categories.add("Vehicles", CategoryTypeEnum.VEHICLES)
    metadata = dict(VEHICLE_METADATA, year=1800, fuelType="coal")
    del metadata["brand"]

    with pytest.raises(ValidationFailedException) as exc:
        await service.create_ad(_create_payload(root.id, metadata=metadata), _user())

    assert [error.field for error in exc.value.errors] == ["brand", "year", "fuelType"]


@pytest.mark.asyncio
async def test_condition_is_only_allowed_for_vehicle_ads(service, categories) -> None:
    misc = categories.add("Misc", CategoryTypeEnum.MISC)

    with pytest.raises(ValidationFailedException) as exc:
        await service.create_ad(
            _create_payload(misc.id, metadata={}, condition=AdConditionEnum.NEW),
            _user(),
        )
    assert exc.value.errors[0].field == "condition"


@pytest.mark.asyncio
async def test_create_ad_in_unknown_category_fails(service) -> None:
    with pytest.raises(NotFoundException):
        await service.create_ad(_create_payload(uuid4()), _user())


@pytest.mark.asyncio
async def test_owner_edits_own_ad_without_permission(service, categories, audit) -> None:
    root = categories.add("Vehicles", CategoryTypeEnum.VEHICLES)
    owner = _user()
    ad = await service.create_ad(_create_payload(root.id), owner)

    updated = await service.update_ad(ad.id, AdUpdate(title="Family car, new tyres", version=1), owner)

    assert updated.title == "Family car, new tyres"
    assert updated.status == AdStatusEnum.PENDING_APPROVAL
    assert updated.version == 2
    assert audit.events[-1]["access_path"] == AccessPathEnum.OWNER
    assert audit.events[-1]["permission_used"] is None


@pytest.mark.asyncio
async def test_update_revalidates_metadata(service, categories) -> None:
    root = categories.add("Vehicles", CategoryTypeEnum.VEHICLES)
    owner = _user()
    ad = await service.create_ad(_create_payload(root.id), owner)

    with pytest.raises(ValidationFailedException):
        await service.update_ad(ad.id, AdUpdate(metadata=dict(VEHICLE_METADATA, mileage=-1)), owner)
    assert ad.version == 1


@pytest.mark.asyncio
async def test_stale_version_is_a_conflict(service, categories) -> None:
    root = categories.add("Vehicles", CategoryTypeEnum.VEHICLES)
    owner = _user()
    ad = await service.create_ad(_create_payload(root.id), owner)
    await service.update_ad(ad.id, AdUpdate(price=Decimal("12000")), owner)

    with pytest.raises(ConflictException):
        await service.update_ad(ad.id, AdUpdate(price=Decimal("11000"), version=1), owner)


@pytest.mark.asyncio
async def test_stranger_cannot_edit_or_delete(service, categories) -> None:
    root = categories.add("Vehicles", CategoryTypeEnum.VEHICLES)
    ad = await service.create_ad(_create_payload(root.id), _user())
    stranger = _user()

    with pytest.raises(ForbiddenException):
        await service.update_ad(ad.id, AdUpdate(title="Mine now"), stranger)
    with pytest.raises(ForbiddenException):
        await service.delete_ad(ad.id, stranger)


@pytest.mark.asyncio
async def test_admin_edit_is_recorded_as_permission_override(service, categories, audit) -> None:
    root = categories.add("Vehicles", CategoryTypeEnum.VEHICLES)
    ad = await service.create_ad(_create_payload(root.id), _user())
    editor = Principal.build(uuid4(), RoleEnum.ADMIN, {ADS_EDIT})

    await service.update_ad(ad.id, AdUpdate(description="Cleaned up description."), editor)

    assert audit.events[-1]["access_path"] == AccessPathEnum.PERMISSION
    assert audit.events[-1]["permission_used"] == ADS_EDIT
    assert audit.events[-1]["actor_role"] == RoleEnum.ADMIN


@pytest.mark.asyncio
async def test_admin_needs_matching_permission_to_delete(service, categories, audit, ads) -> None:
    root = categories.add("Vehicles", CategoryTypeEnum.VEHICLES)
    ad = await service.create_ad(_create_payload(root.id), _user())

    with pytest.raises(ForbiddenException):
        await service.delete_ad(ad.id, Principal.build(uuid4(), RoleEnum.ADMIN, {ADS_EDIT}))

    deleter = Principal.build(uuid4(), RoleEnum.ADMIN, {ADS_DELETE})
    await service.delete_ad(ad.id, deleter)

    assert ads.ads[ad.id].deleted_by_id == deleter.id
    assert audit.events[-1]["action"] == ModerationActionEnum.DELETE
    assert audit.events[-1]["permission_used"] == ADS_DELETE


@pytest.mark.asyncio
async def test_deleted_ad_disappears(service, categories) -> None:
    root = categories.add("Vehicles", CategoryTypeEnum.VEHICLES)
    owner = _user()
    ad = await service.create_ad(_create_payload(root.id), owner)
    await service.delete_ad(ad.id, owner)

    with pytest.raises(NotFoundException):
        await service.get_ad(ad.id, owner)
    with pytest.raises(NotFoundException):
        await service.update_ad(ad.id, AdUpdate(title="Back again"), owner)
    with pytest.raises(NotFoundException):
        await service.delete_ad(ad.id, owner)


@pytest.mark.asyncio
async def test_public_listing_includes_direct_subcategories(service, categories, ads) -> None:
    root = categories.add("Vehicles", CategoryTypeEnum.VEHICLES)
    cars = categories.add("Cars", parent=root)
    bikes = categories.add("Bikes", parent=root)

    await service.list_public_ads(category_id=root.id, city_id=None, limit=20, offset=0)

    call = ads.list_calls[-1]
    assert set(call["category_ids"]) == {root.id, cars.id, bikes.id}
    assert call["statuses"] == frozenset({AdStatusEnum.APPROVED})


@pytest.mark.asyncio
async def test_moderation_queue_needs_an_ads_permission(service) -> None:
    with pytest.raises(ForbiddenException):
        await service.list_moderation_queue(
            Principal.build(uuid4(), RoleEnum.ADMIN),
            status=AdStatusEnum.PENDING_APPROVAL,
            include_deleted=False,
            limit=20,
            offset=0,
        )

    items, total = await service.list_moderation_queue(
        Principal.build(uuid4(), RoleEnum.ADMIN, {ADS_APPROVE}),
        status=AdStatusEnum.PENDING_APPROVAL,
        include_deleted=False,
        limit=20,
        offset=0,
    )
    assert items == []
    assert total == 0


@pytest.mark.asyncio
async def test_pending_ad_is_hidden_from_admin_without_grants(service, categories) -> None:
    root = categories.add("Vehicles", CategoryTypeEnum.VEHICLES)
    owner = _user()
    ad = await service.create_ad(_create_payload(root.id), owner)

    with pytest.raises(NotFoundException):
        await service.get_ad(ad.id, Principal.build(uuid4(), RoleEnum.ADMIN))
    with pytest.raises(NotFoundException):
        await service.get_ad(ad.id, _user())
    with pytest.raises(NotFoundException):
        await service.get_ad(ad.id, None)

    assert await service.get_ad(ad.id, owner) is ad
    assert await service.get_ad(ad.id, Principal.build(uuid4(), RoleEnum.ADMIN, {ADS_APPROVE})) is ad
    assert await service.get_ad(ad.id, Principal.build(uuid4(), RoleEnum.SUPER_ADMIN)) is ad


@pytest.mark.asyncio
async def test_snake_case_metadata_keys_never_reach_stored_fields(service, categories) -> None:
    root = categories.add("Vehicles", CategoryTypeEnum.VEHICLES)
    metadata = dict(VEHICLE_METADATA, power_hp="lots", engine_size=-1, color="grey")

    ad = await service.create_ad(_create_payload(root.id, metadata=metadata), _user())

    assert "powerHP" not in ad.ad_metadata
    assert "engineSize" not in ad.ad_metadata
    assert "power_hp" not in ad.ad_metadata
    assert "engine_size" not in ad.ad_metadata
    assert ad.ad_metadata["color"] == "grey"


@pytest.mark.asyncio
async def test_listing_condition_is_derived_from_vehicle_metadata(service, categories) -> None:
    root = categories.add("Vehicles", CategoryTypeEnum.VEHICLES)
    owner = _user()

    ad = await service.create_ad(_create_payload(root.id), owner)
    assert ad.condition == AdConditionEnum.USED

    updated = await service.update_ad(ad.id, AdUpdate(metadata=dict(VEHICLE_METADATA, condition="new")), owner)
    assert updated.condition == AdConditionEnum.NEW

    like_new = await service.create_ad(_create_payload(root.id, condition=AdConditionEnum.LIKE_NEW), owner)
    assert like_new.condition == AdConditionEnum.LIKE_NEW


@pytest.mark.asyncio
async def test_listing_condition_must_agree_with_vehicle_metadata(service, categories) -> None:
    root = categories.add("Vehicles", CategoryTypeEnum.VEHICLES)

    with pytest.raises(ValidationFailedException) as exc:
        await service.create_ad(
            _create_payload(root.id, metadata=dict(VEHICLE_METADATA, condition="new"), condition=AdConditionEnum.LIKE_NEW),
            _user(),
        )

    assert [(error.field, error.code) for error in exc.value.errors] == [("condition", "mismatch")]
