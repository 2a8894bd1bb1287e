"""Category domain entity: stable `cat_NNN` id, canonical lowercase name, emoji, display order."""
from typing import Optional
from kitchen.utilities.constants import CATEGORY_ID_PREFIX, DEFAULT_CATEGORY_EMOJI


def format_category_id(number: int) -> str:
    return f"{CATEGORY_ID_PREFIX}{number:03d}"


def category_number(category_id: str) -> Optional[int]:
    '''Returns NNN for ids shaped like `cat_NNN`, otherwise None.'''
    if not isinstance(category_id, str) or not category_id.startswith(CATEGORY_ID_PREFIX):
        return None
    suffix = category_id[len(CATEGORY_ID_PREFIX):]
    return int(suffix) if suffix.isdigit() else None


def display_name_for(name: str) -> str:
    return name[:1].upper() + name[1:] if name else name


class Category:
    def __init__(self, id: str, name: str, emoji: str = DEFAULT_CATEGORY_EMOJI, order: int = 0,
                 is_default: bool = False, display_name: Optional[str] = None):
        self.id = str(id)
        self.name = (name or "").strip().lower()
        self.emoji = emoji or DEFAULT_CATEGORY_EMOJI
        self.order = order
        self.is_default = is_default
        self.display_name = display_name or display_name_for((name or "").strip())

    def rename(self, new_name: str):
        trimmed = new_name.strip()
        self.name = trimmed.lower()
        self.display_name = display_name_for(trimmed)

    @property
    def has_legacy_id(self) -> bool:
        return self.id == self.name

    def __str__(self) -> str:
        return f"{self.emoji} {self.display_name} ({self.id})"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        d = dict(data) if isinstance(data, dict) else {}
        try:
            order = int(d.get("order") or 0)
        except (TypeError, ValueError):
            order = 0
        return Category(
            id=d.get("id") or d.get("name", ""),
            name=d.get("name", ""),
            emoji=d.get("emoji") or DEFAULT_CATEGORY_EMOJI,
            order=order,
            is_default=bool(d.get("isDefault", False)),
            display_name=d.get("displayName"),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "displayName": self.display_name,
            "emoji": self.emoji,
            "order": self.order,
            "isDefault": self.is_default,
        }
