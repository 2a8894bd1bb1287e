"""Category store: ordered category records with protected seed categories.

Other stores that hold category references register themselves as holders
(`reassign_category(old_id, new_id)` and `remap_categories(mapping)`), so
deleting or migrating a category rewrites every reference without this store
knowing about products.
"""
import logging
from typing import Dict, Iterable, List, Optional

from kitchen.domain.Category import Category, category_number, format_category_id
from kitchen.domain.errors import DuplicateName, EmptyName, NotFound, ProtectedDefault
from kitchen.events.Event_Bus import GLOBAL_EVENT_BUS, CATEGORIES_CHANGED
from kitchen.utilities.constants import (
    CATEGORIES_KEY, DEFAULT_CATEGORIES, DEFAULT_CATEGORY_EMOJI, OTHER_CATEGORY_ID, OTHER_CATEGORY_NAME,
)

logger = logging.getLogger(__name__)


class CategoryStore:
    def __init__(self, storage, event_bus=None):
        self._storage = storage
        self._event_bus = event_bus or GLOBAL_EVENT_BUS
        self._holders = []
        self.categories: List[Category] = self._load()

    # --- persistence ----------------------------------------------------------
    def _load(self) -> List[Category]:
        saved = self._storage.load_collection(CATEGORIES_KEY, default=[])
        if not isinstance(saved, list):
            saved = []
        if not saved and not self._storage.is_initialized(CATEGORIES_KEY):
            logger.info("New user - seeding default categories")
            self._storage.mark_initialized(CATEGORIES_KEY)
            categories = [Category.from_dict(c) for c in DEFAULT_CATEGORIES]
            self._storage.save_collection(CATEGORIES_KEY, [c.to_dict() for c in categories])
            return categories
        return [Category.from_dict(c) for c in saved if isinstance(c, dict)]

    def save(self) -> bool:
        return self._storage.save_collection(CATEGORIES_KEY, [c.to_dict() for c in self.categories])

    def _changed(self, action: str, category_id: str = ""):
        self.save()
        self._event_bus.publish(CATEGORIES_CHANGED, {"action": action, "category_id": category_id})

    def register_holder(self, holder):
        if holder not in self._holders:
            self._holders.append(holder)
        return self

    # --- queries ----------------------------------------------------------------
    def get_all(self) -> List[Category]:
        return sorted(self.categories, key=lambda c: c.order)

    def count(self) -> int:
        return len(self.categories)

    def get(self, category_id) -> Optional[Category]:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def require(self, category_id) -> Category:
        category = self.get(category_id)
        if category is None:
            raise NotFound(f"Category '{category_id}' not found", category_id=category_id)
        return category

    def exists(self, category_id) -> bool:
        return self.get(category_id) is not None

    def find_by_name(self, name: str) -> Optional[Category]:
        '''Case-insensitive lookup against the canonical name or the display name.'''
        key = (name or "").strip().lower()
        if not key:
            return None
        for category in self.categories:
            if category.name == key or category.display_name.lower() == key:
                return category
        return None

    def display_name(self, category_id) -> str:
        category = self.get(category_id)
        return category.display_name if category else "unknown"

    def emoji(self, category_id) -> str:
        category = self.get(category_id)
        return category.emoji if category else DEFAULT_CATEGORY_EMOJI

    def fallback_id(self, exclude: Optional[str] = None) -> str:
        """Id of the 'other' category that collects homeless products.

        Legacy migration hands out ids in list order, so 'other' is looked up
        by name rather than assumed to be `cat_007`. When no such category is
        left, the default one is put back.
        """
        preferred = self.get(OTHER_CATEGORY_ID)
        candidates = ([preferred] if preferred else []) + self.get_all()
        for category in candidates:
            if category.name == OTHER_CATEGORY_NAME and category.id != exclude:
                return category.id
        return self._restore_other().id

    def _restore_other(self) -> Category:
        seed = next(c for c in DEFAULT_CATEGORIES if c["id"] == OTHER_CATEGORY_ID)
        other = Category.from_dict(seed)
        if self.exists(other.id):
            other.id = self._next_id()
        other.order = max((c.order for c in self.categories), default=-1) + 1
        self.categories.append(other)
        self._changed("restored", other.id)
        logger.warning(f"Category 'other' was missing, restored as {other.id}")
        return other

    def _next_id(self) -> str:
        numbers = [n for n in (category_number(c.id) for c in self.categories) if n is not None]
        return format_category_id(max(numbers, default=0) + 1)

    # --- mutations --------------------------------------------------------------
    def add(self, name: str, emoji: str = DEFAULT_CATEGORY_EMOJI) -> Category:
        trimmed = (name or "").strip() if isinstance(name, str) else ""
        if not trimmed:
            raise EmptyName("Category name cannot be empty")
        if self.find_by_name(trimmed):
            logger.warning(f"Category '{trimmed}' already exists")
            raise DuplicateName(f"Category '{trimmed}' already exists", name=trimmed)

        max_order = max((c.order for c in self.categories), default=-1)
        category = Category(self._next_id(), trimmed, emoji or DEFAULT_CATEGORY_EMOJI, order=max_order + 1)
        self.categories.append(category)
        self._changed("added", category.id)
        logger.info(f"Added category {category}")
        return category

    def edit(self, category_id, name: Optional[str] = None, emoji: Optional[str] = None) -> Category:
        category = self.require(category_id)
        if category.is_default:
            logger.warning(f"Cannot edit default category {category.name}")
            raise ProtectedDefault(f"Category '{category.display_name}' is a default category", category_id=category.id)
        if name is not None:
            trimmed = name.strip()
            if not trimmed:
                raise EmptyName("Category name cannot be empty")
            clash = self.find_by_name(trimmed)
            if clash and clash.id != category.id:
                raise DuplicateName(f"Category '{trimmed}' already exists", name=trimmed)
            category.rename(trimmed)
        if emoji:
            category.emoji = emoji
        self._changed("edited", category.id)
        return category

    def delete(self, category_id) -> Category:
        """Remove a non-default category; every product in it moves to 'other'."""
        category = self.require(category_id)
        if category.is_default:
            logger.warning(f"Cannot delete default category {category.name}")
            raise ProtectedDefault(f"Category '{category.display_name}' is a default category", category_id=category.id)

        target = self.fallback_id(exclude=category.id)
        moved = 0
        for holder in self._holders:
            moved += holder.reassign_category(category.id, target)
        self.categories = [c for c in self.categories if c.id != category.id]
        self._changed("deleted", category.id)
        logger.info(f"Deleted category {category.display_name} (moved {moved} products to Other)")
        return category

    def reorder(self, new_order: Iterable[str]) -> List[Category]:
        '''Listed ids take positions 0..n-1 in the given order; unlisted ones follow in their current order.'''
        listed = []
        for category_id in new_order:
            category = self.get(category_id)
            if category and category not in listed:
                listed.append(category)
        rest = [c for c in self.get_all() if c not in listed]
        for index, category in enumerate(listed + rest):
            category.order = index
        self._changed("reordered")
        return self.get_all()

    def move(self, from_index: int, to_index: int) -> List[Category]:
        ordered = self.get_all()
        if not (0 <= from_index < len(ordered)) or not (0 <= to_index < len(ordered)):
            raise NotFound(f"Category position out of range: {from_index} -> {to_index}")
        if from_index == to_index:
            return ordered
        moved = ordered.pop(from_index)
        ordered.insert(to_index, moved)
        for index, category in enumerate(ordered):
            category.order = index
        self._changed("reordered", moved.id)
        logger.info(f"Moved category '{moved.display_name}' from position {from_index} to {to_index}")
        return ordered

    def migrate_legacy_ids(self) -> Dict[str, str]:
        """Give name-based legacy ids (id == name) a stable `cat_NNN` id.

        Returns the old -> new mapping; empty when nothing needed migrating.
        """
        mapping: Dict[str, str] = {}
        for category in self.categories:
            if category.has_legacy_id:
                new_id = self._next_id()
                mapping[category.id] = new_id
                logger.info(f"Migrating category '{category.id}' -> '{new_id}'")
                category.id = new_id
        if not mapping:
            return mapping
        for holder in self._holders:
            holder.remap_categories(mapping)
        self._changed("migrated")
        return mapping

    def replace_all(self, categories: List[Category]):
        self.categories = list(categories)
        self._changed("replaced")
