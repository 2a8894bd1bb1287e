"""Recipe domain entity: name, description, preparation, ingredient lines, persons, image, metadata."""
from datetime import datetime
from typing import List, Dict, Optional
from kitchen.domain.Ingredient import Ingredient
from kitchen.domain.Product import normalize_id
from kitchen.utilities.constants import DEFAULT_PERSONS


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "y")
    return bool(value)


class Recipe:
    def __init__(self, id, name: str = "", description: str = "", preparation: str = "",
                 ingredients: Optional[List[Ingredient]] = None, ingredients_text: str = "",
                 persons: int = DEFAULT_PERSONS, image: str = "", metadata: Optional[Dict[str, str]] = None,
                 date_created: Optional[str] = None, version: int = 0, cook_time: str = "",
                 prep_time: str = "", allergens: str = "", gluten_free: bool = False, comments: str = ""):
        self.id = normalize_id(id)
        self.name = name
        self.description = description
        self.preparation = preparation
        self.ingredients = ingredients[:] if ingredients else []
        self.ingredients_text = ingredients_text
        self.persons = persons
        self.image = image
        # None marks a legacy record that still needs its metadata inferred
        self.metadata = dict(metadata) if metadata is not None else None
        self.date_created = date_created or datetime.now().isoformat()
        self.version = version
        self.cook_time = cook_time
        self.prep_time = prep_time
        self.allergens = allergens
        self.gluten_free = gluten_free
        self.comments = comments

    def find_ingredient(self, product_id) -> Optional[Ingredient]:
        key = normalize_id(product_id)
        for ingredient in self.ingredients:
            if ingredient.product_id == key:
                return ingredient
        return None

    def uses_product(self, product) -> bool:
        return any(ing.refers_to(product) for ing in self.ingredients)

    def __str__(self) -> str:
        meta = self.metadata or {}
        return f"{self.name} - {self.persons} persons - {len(self.ingredients)} ingredients - {meta.get('cuisine', '?')}"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        d = dict(data) if isinstance(data, dict) else {}
        try:
            persons = int(d.get("persons") or d.get("servings") or DEFAULT_PERSONS)
        except (TypeError, ValueError):
            persons = DEFAULT_PERSONS
        try:
            version = int(d.get("version") or 0)
        except (TypeError, ValueError):
            version = 0
        metadata = d.get("metadata")
        return Recipe(
            id=d.get("id"),
            name=d.get("name", ""),
            description=d.get("description", "") or "",
            preparation=d.get("preparation") or d.get("instructions") or "",
            ingredients=[Ingredient.from_dict(ing) for ing in d.get("ingredients") or []],
            ingredients_text=d.get("ingredientsText", "") or "",
            persons=persons,
            image=d.get("image", "") or "",
            metadata=metadata if isinstance(metadata, dict) else None,
            date_created=d.get("dateCreated"),
            version=version,
            cook_time=str(d.get("cookTime") or ""),
            prep_time=str(d.get("prepTime") or ""),
            allergens=str(d.get("allergens") or ""),
            gluten_free=_as_bool(d.get("glutenFree", False)),
            comments=str(d.get("comments") or ""),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "preparation": self.preparation,
            "ingredients": [ing.to_dict() for ing in self.ingredients],
            "ingredientsText": self.ingredients_text,
            "persons": self.persons,
            "image": self.image,
            "cookTime": self.cook_time,
            "prepTime": self.prep_time,
            "allergens": self.allergens,
            "glutenFree": self.gluten_free,
            "comments": self.comments,
            "metadata": self.metadata,
            "dateCreated": self.date_created,
            "version": self.version,
        }
