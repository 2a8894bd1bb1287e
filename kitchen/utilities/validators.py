"""
Input validation schemas using Pydantic for the HTTP API.

Names are only stripped here; empty and duplicate names are rejected by the
stores so every entry point reports them the same way.
"""
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kitchen.utilities.constants import MAX_UNIT_LENGTH


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


def _strip(v):
    if isinstance(v, str):
        return v.strip()
    return v


class CategoryInput(_CamelModel):
    """Schema for a new category."""
    name: str = Field(..., max_length=50)
    emoji: str = Field("📦", max_length=8)

    @field_validator('name', 'emoji')
    @classmethod
    def strip_whitespace(cls, v):
        return _strip(v)


class CategoryUpdate(_CamelModel):
    name: Optional[str] = Field(None, max_length=50)
    emoji: Optional[str] = Field(None, max_length=8)


class ReorderInput(_CamelModel):
    """Either a full id order or a single move by index."""
    order: Optional[List[str]] = None
    from_index: Optional[int] = Field(None, alias="fromIndex", ge=0)
    to_index: Optional[int] = Field(None, alias="toIndex", ge=0)


class ProductInput(_CamelModel):
    """Schema for product creation."""
    name: str = Field(..., max_length=100)
    category: Optional[str] = None
    in_shopping: bool = Field(False, alias="inShopping")
    pantry: bool = False
    in_stock: bool = Field(False, alias="inStock")
    in_season: bool = Field(True, alias="inSeason")

    @field_validator('name', 'category')
    @classmethod
    def strip_whitespace(cls, v):
        """Remove leading/trailing whitespace."""
        return _strip(v)

    def flags(self) -> Dict[str, bool]:
        return {"in_shopping": self.in_shopping, "pantry": self.pantry,
                "in_stock": self.in_stock, "in_season": self.in_season}


class ProductUpdate(_CamelModel):
    name: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = None
    in_shopping: Optional[bool] = Field(None, alias="inShopping")
    pantry: Optional[bool] = None
    in_stock: Optional[bool] = Field(None, alias="inStock")
    in_season: Optional[bool] = Field(None, alias="inSeason")
    completed: Optional[bool] = None

    def flags(self) -> Dict[str, bool]:
        names = ("in_shopping", "pantry", "in_stock", "in_season", "completed")
        return {n: getattr(self, n) for n in names if getattr(self, n) is not None}


class NamedItemInput(_CamelModel):
    """Shopping/pantry entry by name; the product is created when missing."""
    name: str = Field(..., max_length=100)
    category: Optional[str] = None


class RecipeIngredientInput(_CamelModel):
    product_id: str = Field(..., alias="productId", min_length=1)
    quantity: float = Field(1, gt=0)
    unit: str = Field("pcs", min_length=1, max_length=MAX_UNIT_LENGTH)

    @field_validator('product_id', mode='before')
    @classmethod
    def id_as_string(cls, v):
        """Ids may arrive as numbers from older clients."""
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        return str(v).strip() if v is not None else v

    def to_dict(self) -> dict:
        quantity = int(self.quantity) if float(self.quantity).is_integer() else self.quantity
        return {"productId": self.product_id, "quantity": quantity, "unit": self.unit}


class RecipeMetadataInput(_CamelModel):
    cuisine: str = ""
    main_ingredient: str = Field("", alias="mainIngredient")
    season: str = ""

    def to_dict(self) -> dict:
        return {"cuisine": self.cuisine, "mainIngredient": self.main_ingredient, "season": self.season}


class RecipeInput(_CamelModel):
    """Schema for recipe create/edit; omitted fields stay untouched on edit."""
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    preparation: Optional[str] = None
    ingredients: Optional[List[RecipeIngredientInput]] = None
    ingredients_text: Optional[str] = Field(None, alias="ingredientsText")
    persons: Optional[int] = Field(None, ge=1, le=50)
    image: Optional[str] = None
    metadata: Optional[RecipeMetadataInput] = None
    cook_time: Optional[str] = Field(None, alias="cookTime", max_length=50)
    prep_time: Optional[str] = Field(None, alias="prepTime", max_length=50)
    allergens: Optional[str] = Field(None, max_length=500)
    gluten_free: Optional[bool] = Field(None, alias="glutenFree")
    comments: Optional[str] = None

    @field_validator('name', 'cook_time', 'prep_time', 'allergens')
    @classmethod
    def strip_name(cls, v):
        return _strip(v)

    def fields(self) -> dict:
        data = {}
        for key in ("name", "description", "preparation", "ingredients_text", "persons", "image",
                    "cook_time", "prep_time", "allergens", "gluten_free", "comments"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.ingredients is not None:
            data["ingredients"] = [i.to_dict() for i in self.ingredients]
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        return data


class MealAssignmentInput(_CamelModel):
    """A recipe reference or a simple meal for one slot."""
    day_index: int = Field(..., alias="dayIndex", ge=0, le=6)
    meal_type: Literal["breakfast", "lunch", "dinner"] = Field(..., alias="mealType")
    type: Literal["recipe", "simple"] = "recipe"
    id: Optional[Union[str, int]] = None
    name: str = ""
    products: List[Union[str, int]] = Field(default_factory=list)
    week_key: Optional[str] = Field(None, alias="weekKey", pattern=r'^\d{4}-\d{2}-\d{2}$')

    def assignment(self) -> dict:
        if self.type == "recipe":
            return {"type": "recipe", "id": self.id}
        return {"type": "simple", "name": self.name, "products": list(self.products)}


class IngredientTextInput(_CamelModel):
    text: str = Field(..., max_length=10000)


class CsvTextInput(_CamelModel):
    text: str
    mode: Literal["replace", "update"] = "replace"


class TwoFileCsvInput(_CamelModel):
    info_text: str = Field(..., alias="infoText")
    ingredients_text: str = Field(..., alias="ingredientsText")
