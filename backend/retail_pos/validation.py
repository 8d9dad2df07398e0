from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from .errors import ValidationError, ConflictError  # noqa: F401  (re-exported)
from .money import to_decimal, to_number


# Maximum price: 9,999,999.99
# This prevents nonsensical prices from reaching reports
MAX_PRICE = Decimal("9999999.99")

STRING = "string"
TEXT = "text"
INTEGER = "integer"
MONEY = "money"
DATE = "date"
CHOICE = "choice"


@dataclass(frozen=True)
class FieldSpec:
    kind: str = STRING
    max_length: int | None = 255
    choices: tuple[str, ...] = ()
    min_value: int | None = None


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer for one record type:
    - fields: what clients are allowed to set and how each is coerced
    - required_on_create: fields required for POST
    - defaults: values filled in on create when absent
    """
    fields: dict[str, FieldSpec]
    required_on_create: set[str] = field(default_factory=set)
    defaults: dict[str, Any] = field(default_factory=dict)


def _coerce_value(key: str, spec: FieldSpec, value: Any):
    if value is None:
        return None

    if spec.kind == INTEGER:
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            coerced = value
        elif isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{key} must be an integer")
            # Reject scientific notation (e.g., "1e15") and decimals (e.g., "12.5")
            if 'e' in stripped.lower() or '.' in stripped:
                raise ValidationError(f"{key} must be a plain integer")
            try:
                coerced = int(stripped)
            except ValueError:
                raise ValidationError(f"{key} must be an integer")
        elif isinstance(value, float) and value.is_integer():
            coerced = int(value)
        else:
            raise ValidationError(f"{key} must be an integer")
        if spec.min_value is not None and coerced < spec.min_value:
            raise ValidationError(f"{key} must be >= {spec.min_value}")
        return coerced

    if spec.kind == MONEY:
        try:
            amount = to_decimal(value, key)
        except ValueError as e:
            raise ValidationError(str(e))
        if not amount.is_finite():
            raise ValidationError(f"{key} must be a number")
        if amount < 0:
            raise ValidationError(f"{key} must be >= 0")
        if amount > MAX_PRICE:
            raise ValidationError(f"{key} cannot exceed {MAX_PRICE}")
        return to_number(amount)

    if spec.kind == CHOICE:
        normalized = str(value).strip().lower()
        if normalized not in spec.choices:
            raise ValidationError(f"{key} must be one of: {', '.join(spec.choices)}")
        return normalized

    if spec.kind == DATE:
        text = str(value).strip()
        if text:
            parts = text.split("-")
            if len(parts) != 3 or not all(p.isdigit() for p in parts):
                raise ValidationError(f"{key} must be a YYYY-MM-DD date")
        return text

    # Strings / Text
    return str(value).strip()


def validate_payload(*, payload: dict, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Validates + normalizes an incoming record against a policy.
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create, fill defaults)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.fields:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}
    for k, raw in payload.items():
        spec = policy.fields[k]
        val = _coerce_value(k, spec, raw)

        if val is None and k in policy.required_on_create:
            raise ValidationError(f"{k} cannot be null")
        if val == "" and k in policy.required_on_create:
            raise ValidationError(f"{k} cannot be blank")

        # Max length check for strings
        if isinstance(val, str) and spec.kind in (STRING, TEXT) and spec.max_length:
            if len(val) > spec.max_length:
                raise ValidationError(f"{k} exceeds max length {spec.max_length}")

        patch[k] = val

    if not partial:
        for k, default in policy.defaults.items():
            patch.setdefault(k, default)

    return patch


PRODUCT_POLICY = ModelValidationPolicy(
    fields={
        "name": FieldSpec(),
        "sku": FieldSpec(max_length=64),
        "barcode": FieldSpec(max_length=64),
        "category": FieldSpec(max_length=128),
        "price": FieldSpec(kind=MONEY),
        "cost": FieldSpec(kind=MONEY),
        "stock": FieldSpec(kind=INTEGER, min_value=0),
        "minStock": FieldSpec(kind=INTEGER, min_value=0),
        "description": FieldSpec(kind=TEXT, max_length=4000),
        "supplier": FieldSpec(),
        "brand": FieldSpec(max_length=128),
        "weight": FieldSpec(kind=MONEY),
        "dimensions": FieldSpec(max_length=128),
    },
    required_on_create={"name", "sku", "price"},
    defaults={"barcode": "", "category": "", "cost": 0, "stock": 0, "minStock": 0},
)

CUSTOMER_POLICY = ModelValidationPolicy(
    fields={
        "name": FieldSpec(),
        "email": FieldSpec(),
        "phone": FieldSpec(max_length=32),
        "address": FieldSpec(),
        "city": FieldSpec(max_length=128),
        "postalCode": FieldSpec(max_length=32),
        "dateOfBirth": FieldSpec(kind=DATE),
        "notes": FieldSpec(kind=TEXT, max_length=4000),
        "loyaltyPoints": FieldSpec(kind=INTEGER, min_value=0),
        "creditLimit": FieldSpec(kind=MONEY),
    },
    required_on_create={"name"},
    defaults={"email": "", "phone": "", "loyaltyPoints": 0, "creditLimit": 0},
)

SUPPLIER_POLICY = ModelValidationPolicy(
    fields={
        "name": FieldSpec(),
        "contactPerson": FieldSpec(),
        "email": FieldSpec(),
        "phone": FieldSpec(max_length=32),
        "address": FieldSpec(),
        "city": FieldSpec(max_length=128),
        "postalCode": FieldSpec(max_length=32),
        "country": FieldSpec(max_length=128),
        "website": FieldSpec(),
        "taxId": FieldSpec(max_length=64),
        "paymentTerms": FieldSpec(),
        "notes": FieldSpec(kind=TEXT, max_length=4000),
        "status": FieldSpec(kind=CHOICE, choices=("active", "inactive")),
    },
    required_on_create={"name"},
    defaults={"contactPerson": "", "email": "", "status": "active"},
)


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that the field specs alone do not capture.
    Keep these small and centralized.
    """
    if "sku" in patch and patch["sku"] is not None and not str(patch["sku"]).strip():
        raise ValidationError("sku cannot be blank")
