"""Product CSV import (template: name,category,inShopping,inPantry,inStock,inSeason)."""
import logging

from kitchen.domain.Product import Product
from kitchen.logic.importing.csv_reader import CsvTable, ImportResult, parse_boolean

logger = logging.getLogger(__name__)

PRODUCT_HEADERS = ("name", "category", "inshopping", "inpantry", "instock", "inseason")
MODES = ("replace", "update")


def import_products_csv(text: str, products, categories, mode: str = "replace") -> ImportResult:
    """Create products from CSV rows.

    `replace` never touches an existing record: names already in the store,
    or repeated within the file, are skipped. `update` overwrites the
    category and flags of an existing product of the same name, keeping its
    id and dateAdded.
    """
    if mode not in MODES:
        raise ValueError(f"Unknown import mode '{mode}'")
    table = CsvTable(text, PRODUCT_HEADERS, label="Product CSV")
    result = ImportResult()
    seen_in_file = set()
    changed = []

    for row_number, record in table.records():
        name = record["name"].strip()
        if not name:
            result.skip("Missing product name", row=row_number)
            continue
        category = categories.find_by_name(record["category"]) or categories.get(record["category"].strip())
        if category is None:
            result.skip(f"Unknown category '{record['category']}'", row=row_number, name=name)
            continue

        key = name.lower()
        existing = products.find_by_name(key)
        if mode == "replace" and (existing or key in seen_in_file):
            result.skip(f"Duplicate product '{name}'", row=row_number, name=name)
            continue
        seen_in_file.add(key)

        flags = {
            "in_shopping": parse_boolean(record["inshopping"]),
            "pantry": parse_boolean(record["inpantry"]),
            "in_stock": parse_boolean(record["instock"]),
            "in_season": parse_boolean(record["inseason"]),
        }
        if existing:
            existing.category = category.id
            for attr, value in flags.items():
                setattr(existing, attr, value)
            existing.touch()
            changed.append(existing)
            result.updated_count += 1
        else:
            product = Product(products.next_id(), key, category.id, **flags)
            products.products.append(product)
            changed.append(product)
            result.imported_count += 1

    if changed:
        products.commit("imported", changed)
    logger.info(f"Product CSV import ({mode}): {result.imported_count} created, "
                f"{result.updated_count} updated, {len(result.skipped)} skipped")
    return result
