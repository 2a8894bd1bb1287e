"""
Export and Import functionality for the whole kitchen dataset.
"""
import csv
import io
import json
from datetime import datetime
from pathlib import Path
from typing import Optional
import logging

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
PRODUCT_CSV_HEADERS = ["name", "category", "inShopping", "inPantry", "inStock", "inSeason"]
RECIPE_CSV_HEADERS = [
    "recipeName", "description", "preparation", "ingredientName", "quantity", "unit",
    "cuisine", "mainIngredient", "season", "image", "persons",
    "cookTime", "prepTime", "allergens", "glutenFree", "comments",
]
RECIPE_INFO_HEADERS = [
    "recipeName", "description", "preparation", "persons", "cuisine", "mainIngredient", "season", "image",
    "cookTime", "prepTime", "allergens", "glutenFree", "comments",
]
RECIPE_INGREDIENT_HEADERS = ["recipeName", "ingredientName", "quantity", "unit"]
RECIPE_ONLY_HEADERS = [
    "recipeName", "description", "preparation", "ingredientsText", "persons", "cuisine", "season",
    "cookTime", "prepTime", "allergens", "glutenFree", "comments",
]
_PANCAKE_EXTRAS = {"cookTime": "20 min", "prepTime": "10 min", "allergens": "gluten, milk, egg",
                   "glutenFree": "FALSE", "comments": ""}


def _csv_text(headers, rows) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=headers, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def _escape(text: str) -> str:
    return (text or "").replace("\r\n", "\n").replace("\n", "\\n")


def product_csv_template() -> str:
    return _csv_text(PRODUCT_CSV_HEADERS, [
        {"name": "Apples", "category": "produce", "inShopping": "FALSE", "inPantry": "TRUE",
         "inStock": "TRUE", "inSeason": "TRUE"},
        {"name": "Milk", "category": "dairy", "inShopping": "TRUE", "inPantry": "FALSE",
         "inStock": "FALSE", "inSeason": "TRUE"},
    ])


def recipe_csv_template() -> str:
    base = {"recipeName": "Pancakes", "description": "Fluffy breakfast pancakes",
            "preparation": "1. Mix\\n2. Bake", "cuisine": "American", "mainIngredient": "flour",
            "season": "all-year", "image": "", "persons": "4", **_PANCAKE_EXTRAS}
    return _csv_text(RECIPE_CSV_HEADERS, [
        {**base, "ingredientName": "flour", "quantity": "250", "unit": "g"},
        {**base, "ingredientName": "milk", "quantity": "500", "unit": "ml"},
    ])


def recipe_info_template() -> str:
    return _csv_text(RECIPE_INFO_HEADERS, [
        {"recipeName": "Pancakes", "description": "Fluffy breakfast pancakes", "preparation": "1. Mix\\n2. Bake",
         "persons": "4", "cuisine": "American", "mainIngredient": "flour", "season": "all-year", "image": "",
         **_PANCAKE_EXTRAS},
    ])


def recipe_ingredients_template() -> str:
    return _csv_text(RECIPE_INGREDIENT_HEADERS, [
        {"recipeName": "Pancakes", "ingredientName": "flour", "quantity": "250", "unit": "g"},
        {"recipeName": "Pancakes", "ingredientName": "milk", "quantity": "500", "unit": "ml"},
    ])


def recipe_only_template() -> str:
    return _csv_text(RECIPE_ONLY_HEADERS, [
        {"recipeName": "Pancakes", "description": "Fluffy breakfast pancakes", "preparation": "1. Mix\\n2. Bake",
         "ingredientsText": "250 g flour, 500 ml milk, 2 eggs", "persons": "4", "cuisine": "American",
         "season": "all-year", **_PANCAKE_EXTRAS},
    ])


class DataExporter:
    """Export kitchen data as JSON or CSV."""

    def __init__(self, kitchen):
        self.kitchen = kitchen

    def export_json(self) -> dict:
        return {
            "categories": [c.to_dict() for c in self.kitchen.categories.get_all()],
            "products": [p.to_dict() for p in self.kitchen.products.get_all()],
            "recipes": [r.to_dict() for r in self.kitchen.recipes.get_all()],
            "mealPlans": self.kitchen.meal_plan.to_dict(),
            "exportDate": datetime.now().isoformat(),
            "version": EXPORT_VERSION,
        }

    def write_json(self, output_path: Optional[Path] = None) -> Path:
        """Write the full export to a file and return its path."""
        if output_path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            output_path = Path(f"kitchen_export_{timestamp}.json")
        data = self.export_json()
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        logger.info(f"Exported {len(data['products'])} products and {len(data['recipes'])} recipes to {output_path}")
        return output_path

    def export_products_csv(self) -> str:
        categories = self.kitchen.categories
        rows = []
        for product in self.kitchen.products.get_all():
            category = categories.get(product.category)
            rows.append({
                "name": product.name,
                "category": category.name if category else product.category,
                "inShopping": str(product.in_shopping).upper(),
                "inPantry": str(product.pantry).upper(),
                "inStock": str(product.in_stock).upper(),
                "inSeason": str(product.in_season).upper(),
            })
        return _csv_text(PRODUCT_CSV_HEADERS, rows)

    def export_recipes_csv(self) -> str:
        """Recipes in the single-file layout, one row per ingredient line."""
        products = self.kitchen.products
        rows = []
        for recipe in self.kitchen.recipes.get_all():
            meta = recipe.metadata or {}
            base = {
                "recipeName": recipe.name,
                "description": _escape(recipe.description),
                "preparation": _escape(recipe.preparation),
                "cuisine": meta.get("cuisine", ""),
                "mainIngredient": meta.get("mainIngredient", ""),
                "season": meta.get("season", ""),
                "image": recipe.image,
                "persons": recipe.persons,
                "cookTime": recipe.cook_time,
                "prepTime": recipe.prep_time,
                "allergens": recipe.allergens,
                "glutenFree": str(recipe.gluten_free).upper(),
                "comments": _escape(recipe.comments),
            }
            for ingredient in recipe.ingredients:
                product = products.get(ingredient.product_id)
                rows.append({
                    **base,
                    "ingredientName": product.name if product else ingredient.product_name,
                    "quantity": ingredient.quantity,
                    "unit": ingredient.unit,
                })
        return _csv_text(RECIPE_CSV_HEADERS, rows)


class DataImporter:
    """Restore kitchen data from a JSON export."""

    def __init__(self, kitchen):
        self.kitchen = kitchen

    def import_json(self, data: dict) -> dict:
        """
        Replace every section present in `data`.

        Sections that are missing are left untouched; the counts of what was
        restored are returned.
        """
        if not isinstance(data, dict):
            raise ValueError("Import data must be a JSON object")
        summary = {"categories": 0, "products": 0, "recipes": 0, "mealPlans": 0, "skippedRecipes": []}

        if isinstance(data.get("categories"), list) or isinstance(data.get("products"), list):
            result = self.kitchen.products.import_data(data)
            summary["categories"] = result["categories"]
            summary["products"] = result["products"]

        if isinstance(data.get("recipes"), list):
            summary["skippedRecipes"] = self.kitchen.recipes.restore_all(data["recipes"])
            summary["recipes"] = self.kitchen.recipes.count()

        if isinstance(data.get("mealPlans"), dict):
            for week_key in list(self.kitchen.meal_plan.plans):
                self.kitchen.meal_plan.drop_week(week_key)
            for week_key, days in data["mealPlans"].items():
                self.kitchen.meal_plan.put_week(week_key, days)
            summary["mealPlans"] = len(self.kitchen.meal_plan.plans)

        logger.info(f"Imported data: {summary}")
        return summary

    def import_file(self, input_path: Path) -> dict:
        with open(input_path, 'r', encoding='utf-8') as f:
            return self.import_json(json.load(f))
