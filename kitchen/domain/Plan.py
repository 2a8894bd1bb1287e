"""Meal plan slot values.

A slot holds either a recipe reference, an ad-hoc "simple meal" made of
products, or (legacy data only) a bare numeric recipe id.
"""
from typing import List, Optional, Union
from kitchen.domain.Product import normalize_id


class RecipeMeal:
    type = "recipe"

    def __init__(self, recipe_id):
        self.recipe_id = normalize_id(recipe_id)

    def to_dict(self):
        return {"type": self.type, "id": self.recipe_id}

    def __repr__(self) -> str:
        return f"RecipeMeal({self.recipe_id})"


class SimpleMeal:
    type = "simple"

    def __init__(self, name: str = "", products: Optional[List] = None):
        self.name = name
        self.products = [normalize_id(p) for p in (products or [])]

    def to_dict(self):
        return {"type": self.type, "name": self.name, "products": list(self.products)}

    def __repr__(self) -> str:
        return f"SimpleMeal({self.name!r}, {self.products})"


MealAssignment = Union[RecipeMeal, SimpleMeal]


def assignment_from_value(value) -> Optional[MealAssignment]:
    '''Interprets a persisted slot value; bare numbers (and numeric strings) are legacy recipe ids.'''
    if isinstance(value, (RecipeMeal, SimpleMeal)):
        return value
    if isinstance(value, dict):
        if value.get("type") == "recipe":
            return RecipeMeal(value.get("id"))
        if value.get("type") == "simple":
            return SimpleMeal(value.get("name", ""), value.get("products") or [])
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return RecipeMeal(value)
    if isinstance(value, str) and value.strip().isdigit():
        return RecipeMeal(value)
    return None
