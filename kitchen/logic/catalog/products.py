"""Product store: the single source of truth for shopping, pantry and ingredient data.

Shopping list, pantry and stock/season lists are filters over `products`;
there is no second record to keep in step. Every mutation persists the whole
collection and publishes `products.changed` so dependent views re-read.
"""
import logging
from typing import Dict, Iterable, List, Optional

from kitchen.domain.Category import Category
from kitchen.domain.Product import Product, normalize_id, now_iso
from kitchen.domain.errors import DuplicateName, EmptyName, NotFound
from kitchen.events.Event_Bus import GLOBAL_EVENT_BUS, PRODUCTS_CHANGED
from kitchen.utilities.constants import (
    LEGACY_PANTRY_KEY, LEGACY_SHOPPING_KEY, PRODUCTS_KEY, SAMPLE_PRODUCTS,
)

logger = logging.getLogger(__name__)

TOGGLEABLE = {
    "pantry": "pantry",
    "inPantry": "pantry",
    "inShopping": "in_shopping",
    "inStock": "in_stock",
    "inSeason": "in_season",
    "completed": "completed",
}
EDITABLE_FLAGS = set(Product.FLAGS) | {"in_pantry"}


class ProductStore:
    def __init__(self, storage, categories, event_bus=None):
        self._storage = storage
        self._categories = categories
        self._event_bus = event_bus or GLOBAL_EVENT_BUS
        self.products: List[Product] = self._load()
        categories.register_holder(self)

    # --- persistence ----------------------------------------------------------
    def _load(self) -> List[Product]:
        saved = self._storage.load_collection(PRODUCTS_KEY, default=[])
        if not isinstance(saved, list):
            saved = []
        if not saved and not self._storage.is_initialized(PRODUCTS_KEY):
            logger.info("New user - seeding sample products")
            self._storage.mark_initialized(PRODUCTS_KEY)
            products = [Product.from_dict(p) for p in SAMPLE_PRODUCTS]
            self._storage.save_collection(PRODUCTS_KEY, [p.to_dict() for p in products])
            return products
        products, repaired = self._ensure_integrity(saved)
        if repaired:
            logger.info(f"Repaired {repaired} legacy product records on load")
            self._storage.save_collection(PRODUCTS_KEY, [p.to_dict() for p in products])
        return products

    @staticmethod
    def _ensure_integrity(raw_products) -> tuple:
        '''Rebuild records with defaults; counts records that carried legacy or malformed fields.'''
        products: List[Product] = []
        seen_ids = set()
        repaired = 0
        for raw in raw_products:
            if not isinstance(raw, dict):
                repaired += 1
                continue
            product = Product.from_dict(raw)
            if "inPantry" in raw or not isinstance(raw.get("id"), str) or "pantry" not in raw:
                repaired += 1
            if not product.id or product.id in seen_ids:
                product.id = ProductStore._free_id(seen_ids)
                repaired += 1
            seen_ids.add(product.id)
            products.append(product)
        return products, repaired

    @staticmethod
    def _free_id(taken) -> str:
        numbers = [int(i) for i in taken if i.isdigit()]
        candidate = max(numbers, default=0) + 1
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    def next_id(self) -> str:
        return self._free_id({p.id for p in self.products})

    def save(self) -> bool:
        return self._storage.save_collection(PRODUCTS_KEY, [p.to_dict() for p in self.products])

    def _changed(self, action: str, products: Iterable[Product] = (), ids: Iterable[str] = ()):
        self.save()
        product_ids = [p.id for p in products] + list(ids)
        self._event_bus.publish(PRODUCTS_CHANGED, {"action": action, "product_ids": product_ids})

    def commit(self, action: str, products: Iterable[Product]):
        '''Persist and announce records that were changed in place by a bulk operation.'''
        self._changed(action, list(products))

    def notify(self, action: str = "refresh"):
        '''Ask dependent displays to re-read without changing anything.'''
        self._event_bus.publish(PRODUCTS_CHANGED, {"action": action, "product_ids": []})

    # --- lookups ------------------------------------------------------------------
    def get_all(self) -> List[Product]:
        return self.products

    def count(self) -> int:
        return len(self.products)

    def get(self, product_id) -> Optional[Product]:
        key = normalize_id(product_id)
        for product in self.products:
            if product.id == key:
                return product
        return None

    def require(self, product_id) -> Product:
        product = self.get(product_id)
        if product is None:
            raise NotFound(f"Product '{product_id}' not found", product_id=normalize_id(product_id))
        return product

    def find_by_name(self, name: str) -> Optional[Product]:
        key = (name or "").strip().lower()
        for product in self.products:
            if product.name.lower() == key:
                return product
        return None

    def find_by_name_and_category(self, name: str, category: str) -> Optional[Product]:
        if not name or not category:
            return None
        key = name.strip().lower()
        for product in self.products:
            if product.name.lower() == key and product.category == category:
                return product
        return None

    def get_by_category(self, category_id: str) -> List[Product]:
        return [p for p in self.products if p.category == category_id]

    def search(self, query: str) -> List[Product]:
        term = (query or "").strip().lower() if isinstance(query, str) else ""
        if not term:
            return list(self.products)
        return [p for p in self.products if term in p.name.lower()]

    def filter(self, search_term: str = "", stock_filter: str = "", category_id: str = "") -> List[Product]:
        filtered = self.search(search_term)
        if stock_filter == "inStock":
            filtered = [p for p in filtered if p.in_stock]
        elif stock_filter == "outOfStock":
            filtered = [p for p in filtered if not p.in_stock]
        elif stock_filter == "inShopping":
            filtered = [p for p in filtered if p.in_shopping]
        if category_id and category_id.strip():
            filtered = [p for p in filtered if p.category == category_id.strip()]
        return filtered

    # --- derived views ------------------------------------------------------------
    def shopping_view(self) -> List[Product]:
        return [p for p in self.products if p.in_shopping]

    def pantry_view(self) -> List[Product]:
        return [p for p in self.products if p.pantry]

    def by_stock(self, in_stock: bool = True) -> List[Product]:
        return [p for p in self.products if p.in_stock == in_stock]

    def by_season(self, in_season: bool = True) -> List[Product]:
        return [p for p in self.products if p.in_season == in_season]

    def completed_shopping(self) -> List[Product]:
        return [p for p in self.products if p.in_shopping and p.completed]

    # --- validation helpers -------------------------------------------------------
    def _clean_name(self, name) -> str:
        trimmed = name.strip() if isinstance(name, str) else ""
        if not trimmed:
            raise EmptyName("Product name cannot be empty")
        return trimmed

    def _check_duplicate(self, name: str, exclude_id: Optional[str] = None):
        existing = self.find_by_name(name)
        if existing and existing.id != exclude_id:
            logger.warning(f"Product '{name}' already exists")
            raise DuplicateName(f"Product '{name}' already exists", name=name, product_id=existing.id)

    def _resolve_category(self, category_id) -> str:
        if category_id and self._categories.exists(category_id):
            return category_id
        if category_id:
            logger.warning(f"Category {category_id!r} not found, using 'other'")
        return self._categories.fallback_id()

    # --- CRUD -----------------------------------------------------------------------
    def add(self, name: str, category_id: Optional[str] = None, **flags) -> Product:
        trimmed = self._clean_name(name)
        self._check_duplicate(trimmed)
        product = Product(self.next_id(), trimmed.lower(), self._resolve_category(category_id))
        self._apply_flags(product, flags)
        self.products.append(product)
        self._changed("added", [product])
        logger.info(f"Added product: {product.name} to {product.category}")
        return product

    def _apply_flags(self, product: Product, flags: Dict[str, bool]):
        for key, value in flags.items():
            if key not in EDITABLE_FLAGS:
                raise ValueError(f"Unknown product flag: {key}")
            setattr(product, key, bool(value))

    def edit(self, product_id, name: Optional[str] = None, category: Optional[str] = None, **flags) -> Product:
        product = self.require(product_id)
        new_name = None
        if name is not None:
            new_name = self._clean_name(name)
            self._check_duplicate(new_name, exclude_id=product.id)
        new_category = self._resolve_category(category) if category is not None else None
        unknown = set(flags) - EDITABLE_FLAGS
        if unknown:
            raise ValueError(f"Unknown product flags: {', '.join(sorted(unknown))}")

        if new_name is not None:
            product.name = new_name.lower()
        if new_category is not None:
            product.category = new_category
        self._apply_flags(product, flags)
        product.touch()
        self._changed("edited", [product])
        return product

    def delete(self, product_id) -> Product:
        product = self.require(product_id)
        self.products = [p for p in self.products if p.id != product.id]
        self._changed("deleted", ids=[product.id])
        logger.info(f"Deleted product: {product.name}")
        return product

    # --- toggles ----------------------------------------------------------------------
    def toggle(self, product_id, flag: str) -> Product:
        attr = TOGGLEABLE.get(flag, flag)
        if attr not in TOGGLEABLE.values():
            raise ValueError(f"Flag '{flag}' cannot be toggled")
        product = self.require(product_id)
        setattr(product, attr, not getattr(product, attr))
        if attr == "in_shopping":
            # entering or leaving the list always starts unchecked
            product.completed = False
        if attr == "completed":
            product.bought = product.completed
        product.touch()
        self._changed(f"toggled:{attr}", [product])
        return product

    def toggle_pantry(self, product_id) -> Product:
        return self.toggle(product_id, "pantry")

    def toggle_shopping(self, product_id) -> Product:
        return self.toggle(product_id, "inShopping")

    def toggle_in_stock(self, product_id) -> Product:
        return self.toggle(product_id, "inStock")

    def toggle_in_season(self, product_id) -> Product:
        return self.toggle(product_id, "inSeason")

    def toggle_completed(self, product_id) -> Product:
        return self.toggle(product_id, "completed")

    # --- shopping / pantry actions ----------------------------------------------------
    def add_to_shopping(self, product_id) -> Product:
        product = self.require(product_id)
        product.in_shopping = True
        product.completed = False
        product.touch()
        self._changed("shopping:add", [product])
        return product

    def remove_from_shopping(self, product_id) -> Product:
        product = self.require(product_id)
        product.in_shopping = False
        product.completed = False
        product.touch()
        self._changed("shopping:remove", [product])
        return product

    def mark_completed(self, product_id, completed: bool = True) -> Product:
        product = self.require(product_id)
        if not product.in_shopping:
            raise NotFound(f"Product '{product.name}' is not on the shopping list", product_id=product.id)
        product.completed = completed
        product.bought = completed
        product.touch()
        self._changed("shopping:complete", [product])
        return product

    def clear_completed_shopping(self) -> List[Product]:
        """Checked-off items leave the list and count as bought, so they are in stock."""
        cleared = self.completed_shopping()
        for product in cleared:
            product.in_shopping = False
            product.completed = False
            product.in_stock = True
            product.touch()
        if cleared:
            self._changed("shopping:clear", cleared)
        return cleared

    def _find_or_create(self, name: str, category_id: str) -> tuple:
        trimmed = self._clean_name(name)
        category_id = self._resolve_category(category_id)
        product = self.find_by_name_and_category(trimmed, category_id) or self.find_by_name(trimmed)
        if product:
            return product, False
        product = Product(self.next_id(), trimmed.lower(), category_id)
        self.products.append(product)
        return product, True

    def add_name_to_shopping(self, name: str, category_id: Optional[str] = None) -> Product:
        '''Shopping entry by name; a product is created when no record has that name.'''
        product, created = self._find_or_create(name, category_id)
        product.in_shopping = True
        product.completed = False
        product.touch()
        self._changed("created" if created else "shopping:add", [product])
        return product

    def add_to_pantry(self, name: str, category_id: Optional[str] = None) -> Product:
        '''Pantry entry by name; new pantry items start in stock and in season.'''
        product, created = self._find_or_create(name, category_id)
        if product.pantry and not created:
            logger.warning(f"Item '{product.name}' is already in pantry")
            return product
        product.pantry = True
        product.in_stock = True
        product.in_season = True
        product.touch()
        self._changed("created" if created else "pantry:add", [product])
        return product

    def remove_from_pantry(self, product_id) -> Product:
        product = self.require(product_id)
        product.pantry = False
        product.touch()
        self._changed("pantry:remove", [product])
        return product

    # --- orphans ------------------------------------------------------------------------
    def find_orphaned(self) -> List[Product]:
        return [p for p in self.products if not self._categories.exists(p.category)]

    def fix_orphan(self, product_id, new_category_id: str) -> Product:
        product = self.require(product_id)
        product.category = self._resolve_category(new_category_id)
        product.touch()
        self._changed("orphan:fixed", [product])
        logger.info(f"Fixed orphaned product '{product.name}' -> category {product.category}")
        return product

    def delete_orphan(self, product_id) -> Product:
        return self.delete(product_id)

    def validate_product_categories(self) -> int:
        """Startup repair: every orphan moves to 'other' so later views are well formed."""
        orphans = self.find_orphaned()
        if not orphans:
            return 0
        fallback = self._categories.fallback_id()
        fixed = []
        for product in orphans:
            logger.warning(f"Fixing orphaned product '{product.name}' with invalid category {product.category!r}")
            product.category = fallback
            product.touch()
            fixed.append(product)
        if fixed:
            self._changed("orphans:validated", fixed)
            logger.info(f"Fixed {len(fixed)} orphaned products")
        return len(fixed)

    # --- category holder protocol ----------------------------------------------------------
    def reassign_category(self, old_id: str, new_id: str) -> int:
        moved = [p for p in self.products if p.category == old_id]
        for product in moved:
            product.category = new_id
            product.touch()
        if moved:
            self._changed("category:reassigned", moved)
        return len(moved)

    def remap_categories(self, mapping: Dict[str, str]) -> int:
        changed = [p for p in self.products if p.category in mapping]
        for product in changed:
            product.category = mapping[product.category]
        if changed:
            self._changed("category:migrated", changed)
        for key in (LEGACY_SHOPPING_KEY, LEGACY_PANTRY_KEY):
            items = self._storage.load_collection(key)
            if not isinstance(items, list):
                continue
            for item in items:
                if isinstance(item, dict) and item.get("category") in mapping:
                    item["category"] = mapping[item["category"]]
            self._storage.save_collection(key, items)
        return len(changed)

    # --- legacy list folding ---------------------------------------------------------------
    def sync_with_existing_items(self, shopping_items: Iterable[dict] = (), pantry_items: Iterable[dict] = ()) -> Dict[str, int]:
        """Fold separately kept shopping/pantry lists into the product records.

        Matching is on (name, category) so the same name filed under two
        categories stays two records instead of being merged.
        """
        created = updated = 0
        touched: List[Product] = []

        for item in shopping_items or []:
            if not isinstance(item, dict) or not str(item.get("name") or "").strip():
                continue
            category = item.get("category") or self._categories.fallback_id()
            product = self.find_by_name_and_category(item["name"], category)
            if product is None:
                product = Product(self.next_id(), str(item["name"]).strip().lower(), category,
                                  date_added=item.get("dateAdded") or item.get("addedDate") or now_iso())
                self.products.append(product)
                created += 1
            else:
                updated += 1
            product.in_shopping = True
            product.completed = bool(item.get("completed", False))
            if item.get("fromStandard"):
                product.pantry = True
            touched.append(product)

        for item in pantry_items or []:
            if not isinstance(item, dict) or not str(item.get("name") or "").strip():
                continue
            category = item.get("category") or self._categories.fallback_id()
            product = self.find_by_name_and_category(item["name"], category)
            if product is None:
                product = Product(self.next_id(), str(item["name"]).strip().lower(), category,
                                  date_added=item.get("dateAdded") or now_iso())
                self.products.append(product)
                created += 1
            else:
                updated += 1
            product.pantry = True
            product.in_stock = bool(item.get("inStock", product.in_stock))
            product.in_season = bool(item.get("inSeason", product.in_season))
            touched.append(product)

        if touched:
            for product in touched:
                product.touch()
            self._changed("synced", touched)
        logger.info(f"Synced legacy lists: {created} created, {updated} updated")
        return {"created": created, "updated": updated}

    def fold_legacy_lists(self) -> Dict[str, int]:
        '''Reads legacy shopping/pantry keys, folds them in, then drops the keys.'''
        shopping = self._storage.load_collection(LEGACY_SHOPPING_KEY)
        pantry = self._storage.load_collection(LEGACY_PANTRY_KEY)
        if not shopping and not pantry:
            return {"created": 0, "updated": 0}
        result = self.sync_with_existing_items(shopping or [], pantry or [])
        for key in (LEGACY_SHOPPING_KEY, LEGACY_PANTRY_KEY, f"{LEGACY_SHOPPING_KEY}_backup", f"{LEGACY_PANTRY_KEY}_backup"):
            self._storage.remove_item(key)
        return result

    # --- recipe counts -----------------------------------------------------------------------
    def refresh_recipe_counts(self, recipes) -> Dict[str, int]:
        """Recompute `recipe_count` from recipe ingredient lines (id match, then name match)."""
        counts = {}
        for product in self.products:
            product.recipe_count = sum(1 for recipe in recipes if recipe.uses_product(product))
            counts[product.id] = product.recipe_count
        self.save()
        return counts

    # --- bulk ------------------------------------------------------------------------------------
    def replace_all(self, products: List[Product]):
        removed = [p.id for p in self.products]
        self.products = list(products)
        self._changed("replaced", self.products, ids=removed)

    def put_record(self, product: Product, notify: bool = True):
        '''Insert or overwrite a record as-is (remote snapshots, imports).'''
        for index, existing in enumerate(self.products):
            if existing.id == product.id:
                self.products[index] = product
                break
        else:
            self.products.append(product)
        if notify:
            self._changed("put", [product])
        else:
            self.save()

    def drop_record(self, product_id, notify: bool = True) -> bool:
        key = normalize_id(product_id)
        before = len(self.products)
        self.products = [p for p in self.products if p.id != key]
        if len(self.products) == before:
            return False
        if notify:
            self._changed("deleted", ids=[key])
        else:
            self.save()
        return True

    def statistics(self) -> dict:
        breakdown = {}
        for category in self._categories.get_all():
            products = self.get_by_category(category.id)
            breakdown[category.id] = {
                "name": category.display_name,
                "emoji": category.emoji,
                "productCount": len(products),
                "inShopping": sum(1 for p in products if p.in_shopping),
                "inPantry": sum(1 for p in products if p.pantry),
                "inStock": sum(1 for p in products if p.in_stock),
            }
        return {
            "totalCategories": self._categories.count(),
            "totalProducts": len(self.products),
            "inShopping": len(self.shopping_view()),
            "inPantry": len(self.pantry_view()),
            "inStock": len(self.by_stock(True)),
            "inSeason": len(self.by_season(True)),
            "orphaned": len(self.find_orphaned()),
            "categoryBreakdown": breakdown,
        }

    def export_data(self) -> dict:
        return {
            "categories": [c.to_dict() for c in self._categories.get_all()],
            "products": [p.to_dict() for p in self.products],
            "exportDate": now_iso(),
        }

    def import_data(self, data: dict) -> Dict[str, int]:
        """Replace categories/products from an exported blob; malformed records are dropped."""
        if not isinstance(data, dict):
            raise ValueError("Import data must be an object")

        imported_categories = 0
        raw_categories = data.get("categories")
        if isinstance(raw_categories, list):
            categories = [Category.from_dict(c) for c in raw_categories
                          if isinstance(c, dict) and c.get("id") and c.get("name")]
            if categories:
                self._categories.replace_all(categories)
                imported_categories = len(categories)

        imported_products = 0
        raw_products = data.get("products")
        if isinstance(raw_products, list):
            valid = [p for p in raw_products if isinstance(p, dict) and str(p.get("name") or "").strip()]
            products, _ = self._ensure_integrity(valid)
            self.replace_all(products)
            imported_products = len(products)

        fixed = self.validate_product_categories()
        logger.info(f"Imported {imported_categories} categories and {imported_products} products")
        return {"categories": imported_categories, "products": imported_products, "orphansFixed": fixed}
