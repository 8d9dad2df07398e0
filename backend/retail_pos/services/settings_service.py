from __future__ import annotations

import re
from decimal import Decimal
from typing import Any

from flask import current_app

from ..errors import ValidationError
from ..money import percent_to_rate, to_decimal, to_number
from .record_store import records


STORE_SETTINGS_PATH = "settings/store"
USER_SETTINGS_COLLECTION = "settings/users"

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

USER_SETTING_KEYS = {"language", "theme", "notifications", "receiptPrinter", "defaultPaymentMethod"}


def store_defaults() -> dict:
    """Store defaults, taken from application config."""
    cfg = current_app.config
    return {
        "storeName": cfg.get("STORE_NAME", "My Store"),
        "storeAddress": "",
        "storePhone": "",
        "storeEmail": "",
        "currency": cfg.get("CURRENCY", "DA"),
        "taxRate": cfg.get("TAX_RATE_PERCENT", 19),
        "receiptFooter": "Thank you for your purchase!",
        "lowStockThreshold": cfg.get("LOW_STOCK_THRESHOLD", 10),
    }


def _validate_store_value(key: str, value: Any):
    if key == "taxRate":
        try:
            rate = to_decimal(value, key)
        except ValueError as e:
            raise ValidationError(str(e))
        if not rate.is_finite() or rate < 0 or rate > 100:
            raise ValidationError("taxRate must be between 0 and 100")
        return to_number(rate)

    if key == "lowStockThreshold":
        if isinstance(value, bool):
            raise ValidationError("lowStockThreshold must be an integer")
        try:
            threshold = int(value)
        except (TypeError, ValueError):
            raise ValidationError("lowStockThreshold must be an integer")
        if threshold < 0:
            raise ValidationError("lowStockThreshold must be >= 0")
        return threshold

    if key == "storeEmail":
        text = str(value or "").strip()
        if text and not EMAIL_RE.match(text):
            raise ValidationError("storeEmail must be a valid email address")
        return text

    if key == "currency":
        text = str(value or "").strip()
        if not text or len(text) > 8:
            raise ValidationError("currency must be 1-8 characters")
        return text

    return "" if value is None else str(value).strip()


def get_store_settings() -> dict:
    stored = records.read(STORE_SETTINGS_PATH) or {}
    return {**store_defaults(), **stored}


def update_store_settings(payload: dict) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    allowed = store_defaults()
    patch = {}
    for key, value in payload.items():
        if key not in allowed:
            raise ValidationError(f"Unknown store setting: {key}")
        patch[key] = _validate_store_value(key, value)

    if patch:
        records.update(STORE_SETTINGS_PATH, patch)
    return get_store_settings()


def get_user_settings(uid: str) -> dict:
    return records.read(f"{USER_SETTINGS_COLLECTION}/{uid}") or {}


def update_user_settings(uid: str, payload: dict) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    unknown = sorted(set(payload) - USER_SETTING_KEYS)
    if unknown:
        raise ValidationError(f"Unknown user setting: {', '.join(unknown)}")
    records.update(f"{USER_SETTINGS_COLLECTION}/{uid}", dict(payload))
    return get_user_settings(uid)


def get_tax_rate() -> Decimal:
    """Effective tax rate as a fraction, e.g. Decimal('0.19')."""
    return percent_to_rate(get_store_settings()["taxRate"])


def get_low_stock_threshold() -> int:
    return int(get_store_settings()["lowStockThreshold"])


def get_currency() -> str:
    return get_store_settings()["currency"]
