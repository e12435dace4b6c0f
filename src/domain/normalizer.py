from __future__ import annotations

from calendar import month_name
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from domain.models import Budget, Category, EntityType, EntryType, Goal, Profile, Transaction
from domain.schemas import FieldSpec

# Store column names per canonical attribute, canonical suffixed name first.
FIELD_NAMES: dict[EntityType, dict[str, tuple[str, ...]]] = {
    EntityType.TRANSACTION: {
        "id": ("Id", "id"),
        "title": ("title_c", "title", "Name"),
        "amount": ("amount_c", "amount"),
        "type": ("type_c", "type"),
        "category": ("category_c", "category", "categoryId", "category_id"),
        "description": ("description_c", "description"),
        "date": ("date_c", "date"),
        "created_at": ("created_at_c", "createdAt", "created_at"),
    },
    EntityType.CATEGORY: {
        "id": ("Id", "id"),
        "name": ("name_c", "Name", "name"),
        "type": ("type_c", "type"),
        "color": ("color_c", "color"),
        "is_default": ("is_default_c", "isDefault", "is_default"),
    },
    EntityType.BUDGET: {
        "id": ("Id", "id"),
        "title": ("title_c", "title"),
        "category": ("category_c", "category", "categoryId", "category_id"),
        "limit": ("limit_c", "limit"),
        "spent": ("spent_c", "spent"),
        "month": ("month_c", "month"),
        "year": ("year_c", "year"),
    },
    EntityType.GOAL: {
        "id": ("Id", "id"),
        "name": ("name_c", "Name", "name"),
        "target_amount": ("target_amount_c", "targetAmount", "target_amount"),
        "current_amount": ("current_amount_c", "currentAmount", "current_amount"),
        "target_date": ("target_date_c", "targetDate", "target_date"),
        "created_at": ("created_at_c", "createdAt", "created_at"),
    },
    EntityType.PROFILE: {
        "id": ("Id", "id"),
        "name": ("name_c", "Name", "name"),
        "avatar": ("avatar_c", "avatar"),
        "website": ("website_c", "website"),
        "bio": ("bio_c", "bio"),
        "email": ("email_id_c", "email", "emailAddress"),
    },
}

_ENTITY_CLASSES = {
    EntityType.TRANSACTION: Transaction,
    EntityType.CATEGORY: Category,
    EntityType.BUDGET: Budget,
    EntityType.GOAL: Goal,
    EntityType.PROFILE: Profile,
}

MONTHS = [name for name in month_name if name]


def pick(raw: Mapping[str, Any], entity_type: EntityType | str, attribute: str) -> Any:
    """Return the raw value for `attribute`, canonical name first, or None."""
    for name in FIELD_NAMES[EntityType(entity_type)][attribute]:
        value = raw.get(name)
        if value is not None:
            return value
    return None


def field_spec(entity_type: EntityType | str) -> list[FieldSpec]:
    """Columns to request from the store; references embed the target's `Name`."""
    spec: list[FieldSpec] = [FieldSpec(name="Id"), FieldSpec(name="Name")]
    for attribute, names in FIELD_NAMES[EntityType(entity_type)].items():
        column = names[0]
        if column in ("Id", "Name"):
            continue
        if attribute == "category":
            spec.append(FieldSpec(name=column, reference="Name"))
        else:
            spec.append(FieldSpec(name=column))
    return spec


def normalize(entity_type: EntityType | str, raw: Any) -> Any:
    """
    Map a raw store record to its canonical entity.

    Total: missing or malformed values fall back to "", 0, False or None.
    An entity that is already canonical is returned unchanged.
    """
    entity_type = EntityType(entity_type)
    entity_cls = _ENTITY_CLASSES[entity_type]
    if isinstance(raw, entity_cls):
        return raw
    if not isinstance(raw, Mapping):
        raw = {}

    def get(attribute: str) -> Any:
        return pick(raw, entity_type, attribute)

    record_id = _optional_int(get("id"))

    if entity_type is EntityType.TRANSACTION:
        category_id, category_name = resolve_reference(get("category"))
        return Transaction(
            id=record_id,
            title=_text(get("title")),
            amount=_decimal(get("amount")),
            type=_entry_type(get("type")),
            category_id=category_id,
            description=_text(get("description")),
            date=_date(get("date")),
            created_at=_datetime(get("created_at")),
            category_name=category_name,
        )

    if entity_type is EntityType.CATEGORY:
        return Category(
            id=record_id,
            name=_text(get("name")),
            type=_entry_type(get("type")),
            color=_text(get("color")),
            is_default=_bool(get("is_default")),
        )

    if entity_type is EntityType.BUDGET:
        category_id, category_name = resolve_reference(get("category"))
        return Budget(
            id=record_id,
            category_id=category_id,
            limit=_decimal(get("limit")),
            spent=_decimal(get("spent")),
            month=_month(get("month")),
            year=_optional_int(get("year")) or 0,
            title=_text(get("title")),
            category_name=category_name,
        )

    if entity_type is EntityType.GOAL:
        return Goal(
            id=record_id,
            name=_text(get("name")),
            target_amount=_decimal(get("target_amount")),
            current_amount=_decimal(get("current_amount")),
            target_date=_date(get("target_date")),
            created_at=_datetime(get("created_at")),
        )

    return Profile(
        id=record_id,
        name=_text(get("name")),
        avatar=_text(get("avatar")),
        website=_text(get("website")),
        bio=_text(get("bio")),
        email=_text(get("email")),
    )


def to_record(entity: Any, include_id: bool = True) -> dict[str, Any]:
    """Build the canonical store field map for writing `entity`.

    References are written as scalar ids; display-only names are not written.
    """
    if not is_dataclass(entity):
        raise TypeError(f"Expected a domain entity, got {type(entity).__name__}")
    entity_type = next(t for t, cls in _ENTITY_CLASSES.items() if isinstance(entity, cls))
    names = FIELD_NAMES[entity_type]

    record: dict[str, Any] = {}
    if include_id and entity.id is not None:
        record["Id"] = entity.id

    for item in fields(entity):
        attribute = "category" if item.name == "category_id" else item.name
        if attribute in ("id", "category_name") or attribute not in names:
            continue
        column = names[attribute][0]
        if column == "Name":
            continue
        record[column] = _to_store_value(getattr(entity, item.name))

    record["Name"] = _display_name(entity)
    return record


def partial_record(entity_type: EntityType | str, changes: Mapping[str, Any]) -> dict[str, Any]:
    """Map only the supplied attributes (legacy or canonical keys) to store columns."""
    entity_type = EntityType(entity_type)
    record: dict[str, Any] = {}
    for attribute, names in FIELD_NAMES[entity_type].items():
        if attribute == "id":
            continue
        if not any(name in changes for name in names):
            continue
        value = pick(changes, entity_type, attribute)
        if attribute == "category":
            value = resolve_reference(value)[0]
        record[names[0]] = _to_store_value(value)
    return record


def resolve_reference(value: Any) -> tuple[int | None, str | None]:
    """Split a reference field into (scalar id for writes, display name for reads)."""
    if isinstance(value, Mapping):
        ref_id = _optional_int(value.get("Id", value.get("id")))
        ref_name = value.get("Name", value.get("name"))
        return ref_id, (str(ref_name) if ref_name is not None else None)
    if isinstance(value, bool) or value is None:
        return None, None
    if isinstance(value, int):
        return value, None
    if isinstance(value, float):
        return (int(value), None) if value.is_integer() else (None, None)
    text = str(value).strip()
    if not text:
        return None, None
    if text.isdigit():
        return int(text), None
    # Legacy budget reads carried the category name in place of the id.
    return None, text


def _display_name(entity: Any) -> str:
    if isinstance(entity, Transaction):
        return entity.title or entity.description or "Transaction"
    if isinstance(entity, Budget):
        if entity.title:
            return entity.title
        return f"{entity.category_name or entity.category_id or ''} Budget".strip()
    return getattr(entity, "name", "") or ""


def _to_store_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, EntryType):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Mapping):
        return str(value.get("Name") or value.get("name") or "")
    return str(value)


def _decimal(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return Decimal(0)
    try:
        parsed = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal(0)
    return parsed if parsed.is_finite() else Decimal(0)


def _optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        try:
            return int(float(str(value)))
        except (TypeError, ValueError, OverflowError):
            return None


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _entry_type(value: Any) -> EntryType:
    if isinstance(value, EntryType):
        return value
    try:
        return EntryType(str(value or "").strip().lower())
    except ValueError:
        return EntryType.EXPENSE


def _month(value: Any) -> str:
    if value is None:
        return ""
    number = _optional_int(value) if not isinstance(value, str) or value.strip().isdigit() else None
    if number is not None and 1 <= number <= 12:
        return MONTHS[number - 1]
    text = str(value).strip()
    for name in MONTHS:
        if name.lower() == text.lower():
            return name
    return text


def _date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def _datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
