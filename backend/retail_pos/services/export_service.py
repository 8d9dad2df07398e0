# Overview: Backup/restore and tabular exports of catalog, ledger and settings records.

"""
Export / Backup

- export_backup(): one JSON document holding every collection plus the
  store settings, keyed the same way the record store keys them.
- import_backup(): writes records back under their original ids. Record
  fields, timestamps included, are kept exactly as exported.
- export_csv() / export_xlsx(): flat sheets for products, customers,
  suppliers and inventory, with fixed column order.
"""

from __future__ import annotations

import csv
import io

from ..errors import ValidationError
from ..time_utils import to_utc_z, utcnow
from .record_store import records, normalize_path
from . import inventory_service
from .settings_service import STORE_SETTINGS_PATH


BACKUP_COLLECTIONS = ("products", "customers", "suppliers", "transactions", "inventory-adjustments")

CSV_COLUMNS = {
    "products": ["id", "name", "sku", "barcode", "category", "price", "cost", "stock", "minStock",
                 "supplier", "brand", "description"],
    "customers": ["id", "name", "email", "phone", "address", "city", "postalCode", "loyaltyPoints",
                  "creditLimit"],
    "suppliers": ["id", "name", "contactPerson", "email", "phone", "address", "city", "country",
                  "paymentTerms", "status"],
    "inventory": ["id", "name", "sku", "category", "stock", "minStock", "status", "price", "stockValue"],
}


def export_backup() -> dict:
    backup = {name: records.list(name) for name in BACKUP_COLLECTIONS}
    backup["settings"] = {"store": records.read(STORE_SETTINGS_PATH) or {}}
    backup["exportDate"] = to_utc_z(utcnow())
    return backup


def import_backup(data: dict) -> dict:
    """
    Restore a backup produced by export_backup. Existing records with the
    same id are overwritten; other records are left alone.
    Returns the number of records written per collection.
    """
    if not isinstance(data, dict):
        raise ValidationError("Backup must be a JSON object")

    # Validate the whole document before writing anything
    for name in BACKUP_COLLECTIONS:
        rows = data.get(name, [])
        if not isinstance(rows, list):
            raise ValidationError(f"{name} must be a list")
        for row in rows:
            if not isinstance(row, dict) or not row.get("id"):
                raise ValidationError(f"Every {name} record needs an id")
            normalize_path(f"{name}/{row['id']}")

    counts = {}
    for name in BACKUP_COLLECTIONS:
        rows = data.get(name, [])
        for row in rows:
            records.set(f"{name}/{row['id']}", row, preserve_timestamps=True)
        counts[name] = len(rows)

    store_settings = (data.get("settings") or {}).get("store")
    if store_settings:
        if not isinstance(store_settings, dict):
            raise ValidationError("settings.store must be an object")
        records.set(STORE_SETTINGS_PATH, store_settings, preserve_timestamps=True)
    counts["settings"] = 1 if store_settings else 0
    return counts


def _inventory_rows() -> list[dict]:
    rows = []
    for product in records.list("products"):
        stock = int(product.get("stock") or 0)
        rows.append({
            **product,
            "status": inventory_service.classify(product).value,
            "stockValue": (product.get("price") or 0) * stock,
        })
    return rows


def _rows_for(entity: str) -> tuple[list[str], list[dict]]:
    if entity not in CSV_COLUMNS:
        raise ValidationError(f"entity must be one of: {', '.join(CSV_COLUMNS)}")
    if entity == "inventory":
        return CSV_COLUMNS[entity], _inventory_rows()
    return CSV_COLUMNS[entity], records.list(entity)


def export_csv(entity: str) -> str:
    columns, rows = _rows_for(entity)
    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=columns, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({c: row.get(c, "") for c in columns})
    return out.getvalue()


def export_xlsx(entity: str) -> bytes:
    from openpyxl import Workbook

    columns, rows = _rows_for(entity)
    wb = Workbook()
    sheet = wb.active
    sheet.title = entity
    sheet.append(columns)
    for row in rows:
        sheet.append([row.get(c, "") for c in columns])

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
