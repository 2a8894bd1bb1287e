"""Product domain entity: the single record behind shopping, pantry and ingredient views.

Membership is carried by independent boolean flags. `pantry` is the canonical
pantry flag; the legacy `inPantry` key is folded into it on load and never
written back. `in_pantry` stays available as an attribute alias so callers
reading either name always see the same value.
"""
from datetime import datetime
from typing import Optional


def now_iso() -> str:
    return datetime.now().isoformat()


def normalize_id(value) -> str:
    """Canonical string form for any entity id (ints, floats like 3.0, strings)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


class Product:
    FLAGS = ("in_shopping", "pantry", "in_stock", "in_season", "completed", "bought")

    def __init__(self, id, name: str, category: str, in_shopping: bool = False, pantry: bool = False,
                 in_stock: bool = False, in_season: bool = True, completed: bool = False,
                 bought: bool = False, recipe_count: int = 0, date_added: Optional[str] = None,
                 last_modified: Optional[str] = None, version: int = 0):
        self.id = normalize_id(id)
        self.name = name
        self.category = category
        self.in_shopping = in_shopping
        self.pantry = pantry
        self.in_stock = in_stock
        self.in_season = in_season
        self.completed = completed
        self.bought = bought
        self.recipe_count = recipe_count
        self.date_added = date_added or now_iso()
        self.last_modified = last_modified or self.date_added
        self.version = version

    @property
    def in_pantry(self) -> bool:
        return self.pantry

    @in_pantry.setter
    def in_pantry(self, value: bool):
        self.pantry = bool(value)

    def touch(self):
        self.last_modified = now_iso()
        self.version += 1

    def __str__(self) -> str:
        flags = [name for name in self.FLAGS if getattr(self, name) and name != "in_season"]
        return f"{self.name} [{self.category}] {' '.join(flags)}".rstrip()

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        '''Builds a Product from a persisted or imported dict, repairing missing/legacy fields.'''
        d = dict(data) if isinstance(data, dict) else {}

        def flag(key, default=False):
            value = d.get(key)
            return value if isinstance(value, bool) else default

        pantry = flag("pantry") or flag("inPantry")
        try:
            recipe_count = int(d.get("recipeCount") or 0)
        except (TypeError, ValueError):
            recipe_count = 0
        try:
            version = int(d.get("version") or 0)
        except (TypeError, ValueError):
            version = 0
        return Product(
            id=d.get("id"),
            name=d.get("name") or "Unknown Product",
            category=d.get("category") or "",
            in_shopping=flag("inShopping"),
            pantry=pantry,
            in_stock=flag("inStock"),
            in_season=flag("inSeason", True),
            completed=flag("completed"),
            bought=flag("bought"),
            recipe_count=recipe_count,
            date_added=d.get("dateAdded") or d.get("created") or d.get("addedDate"),
            last_modified=d.get("lastModified"),
            version=version,
        )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "inShopping": self.in_shopping,
            "pantry": self.pantry,
            "inStock": self.in_stock,
            "inSeason": self.in_season,
            "completed": self.completed,
            "bought": self.bought,
            "recipeCount": self.recipe_count,
            "dateAdded": self.date_added,
            "lastModified": self.last_modified,
            "version": self.version,
        }
