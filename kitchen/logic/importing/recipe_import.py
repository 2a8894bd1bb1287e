"""Recipe CSV imports.

Three layouts are accepted:

* single file, one row per (recipe, ingredient) pair;
* two files, recipe info (one row per recipe) joined by recipe name to an
  ingredient file (one row per ingredient);
* recipe only, one row per recipe with ingredients kept as free text.

Ingredient names must match an existing product exactly (ignoring case).
Recipes that already exist are skipped whole, bad rows are skipped one by
one, and the caller gets the list of skips with their reasons.
"""
import logging
from collections import OrderedDict
from typing import Dict, List, Optional

from kitchen.domain.Ingredient import Ingredient
from kitchen.domain.errors import KitchenError
from kitchen.logic.importing.csv_reader import CsvTable, ImportResult, parse_boolean, unescape_newlines
from kitchen.utilities.constants import DEFAULT_PERSONS, MAX_UNIT_LENGTH

logger = logging.getLogger(__name__)

SINGLE_FILE_HEADERS = ("recipename", "description", "preparation", "ingredientname", "quantity", "unit")
INFO_HEADERS = ("recipename",)
INGREDIENT_HEADERS = ("recipename", "ingredientname", "quantity", "unit")
RECIPE_ONLY_HEADERS = ("recipename", "ingredientstext")
MAX_SIMILAR = 3


def similar_product_names(name: str, products, limit: int = MAX_SIMILAR) -> List[str]:
    term = name.strip().lower()
    if not term:
        return []
    matches = []
    for product in products.get_all():
        lowered = product.name.lower()
        if term in lowered or lowered in term or lowered[:3] == term[:3]:
            matches.append(product.name)
        if len(matches) >= limit:
            break
    return matches


class RecipeCsvImporter:
    def __init__(self, recipes, products):
        self.recipes = recipes
        self.products = products

    # --- shared pieces ----------------------------------------------------------
    def _parse_quantity(self, raw: str) -> Optional[float]:
        try:
            quantity = float(str(raw).strip().replace(",", "."))
        except ValueError:
            return None
        if quantity <= 0:
            return None
        return int(quantity) if quantity.is_integer() else quantity

    def _parse_persons(self, raw: str) -> int:
        try:
            persons = int(float(raw))
        except (TypeError, ValueError):
            return DEFAULT_PERSONS
        return persons if persons > 0 else DEFAULT_PERSONS

    def _resolve_unit(self, raw: str, result: ImportResult) -> Optional[str]:
        unit = (raw or "").strip() or "pcs"
        if unit in self.recipes.units:
            return unit
        if len(unit) > MAX_UNIT_LENGTH:
            return None
        self.recipes.register_unit(unit)
        if unit not in result.new_units:
            result.new_units.append(unit)
        return unit

    def _ingredient_from(self, record: Dict[str, str], row: int, recipe_name: str, taken: set,
                         result: ImportResult) -> Optional[Ingredient]:
        name = record.get("ingredientname", "").strip()
        if not name:
            result.skip("Missing ingredient name", row=row, recipe=recipe_name)
            return None
        product = self.products.find_by_name(name)
        if product is None:
            result.skip(f"Product '{name}' not found", row=row, recipe=recipe_name,
                        similar=similar_product_names(name, self.products))
            return None
        if product.id in taken:
            result.skip(f"Product '{product.name}' listed twice", row=row, recipe=recipe_name)
            return None
        quantity = self._parse_quantity(record.get("quantity", ""))
        if quantity is None:
            result.skip(f"Invalid quantity '{record.get('quantity', '')}'", row=row, recipe=recipe_name)
            return None
        unit = self._resolve_unit(record.get("unit", ""), result)
        if unit is None:
            result.skip(f"Unit '{record.get('unit')}' longer than {MAX_UNIT_LENGTH} characters",
                        row=row, recipe=recipe_name)
            return None
        taken.add(product.id)
        return Ingredient(product.id, quantity, unit, product.name)

    def _metadata(self, record: Dict[str, str], result: ImportResult) -> Optional[Dict[str, str]]:
        cuisine = record.get("cuisine", "").strip()
        main_ingredient = record.get("mainingredient", "").strip()
        season = record.get("season", "").strip()
        if cuisine and self.recipes.register_cuisine(cuisine) and cuisine not in result.new_cuisines:
            result.new_cuisines.append(cuisine)
        if season and self.recipes.register_season(season) and season not in result.new_seasons:
            result.new_seasons.append(season)
        if not (cuisine or main_ingredient or season):
            return None
        return {"cuisine": cuisine, "mainIngredient": main_ingredient, "season": season}

    def _create(self, name: str, info: Dict[str, str], ingredients: List[Ingredient],
                result: ImportResult, ingredients_text: str = ""):
        try:
            self.recipes.add(
                name,
                description=unescape_newlines(info.get("description", "")),
                preparation=unescape_newlines(info.get("preparation", "")),
                ingredients=ingredients,
                ingredients_text=unescape_newlines(ingredients_text or info.get("ingredientstext", "")),
                persons=self._parse_persons(info.get("persons", "")),
                image=info.get("image", "").strip(),
                metadata=self._metadata(info, result),
                cook_time=info.get("cooktime", "").strip(),
                prep_time=info.get("preptime", "").strip(),
                allergens=info.get("allergens", "").strip(),
                gluten_free=parse_boolean(info.get("glutenfree", "")),
                comments=unescape_newlines(info.get("comments", "")),
            )
        except KitchenError as e:
            result.skip(e.message, recipe=name)
            return
        result.imported_count += 1

    @staticmethod
    def _group(table: CsvTable, result: ImportResult) -> "OrderedDict[str, list]":
        groups: "OrderedDict[str, list]" = OrderedDict()
        for row, record in table.records():
            name = record["recipename"].strip()
            if not name:
                result.skip("Missing recipe name", row=row)
                continue
            groups.setdefault(name.lower(), []).append((row, record))
        return groups

    # --- layouts ------------------------------------------------------------------
    def import_single_file(self, text: str) -> ImportResult:
        table = CsvTable(text, SINGLE_FILE_HEADERS, label="Recipe CSV")
        result = ImportResult()
        for rows in self._group(table, result).values():
            first_row, info = rows[0]
            name = info["recipename"].strip()
            if self.recipes.find_by_name(name):
                result.skip(f"Recipe '{name}' already exists", recipe=name)
                continue
            merged = dict(info)
            for _, record in rows[1:]:
                for key, value in record.items():
                    if value and not merged.get(key):
                        merged[key] = value
            taken: set = set()
            ingredients = [ing for ing in (self._ingredient_from(record, row, name, taken, result)
                                           for row, record in rows) if ing]
            if not ingredients and not merged.get("ingredientstext", "").strip():
                result.skip("No valid ingredients", recipe=name, row=first_row)
                continue
            self._create(name, merged, ingredients, result)
        logger.info(f"Recipe CSV import: {result.imported_count} recipes, {len(result.skipped)} skipped")
        return result

    def import_two_files(self, info_text: str, ingredients_text: str) -> ImportResult:
        info_table = CsvTable(info_text, INFO_HEADERS, label="Recipe info CSV")
        ingredient_table = CsvTable(ingredients_text, INGREDIENT_HEADERS, label="Recipe ingredients CSV")
        result = ImportResult()

        infos = OrderedDict()
        for row, record in info_table.records():
            name = record["recipename"].strip()
            if not name:
                result.skip("Missing recipe name", row=row)
            elif name.lower() in infos:
                result.skip(f"Recipe '{name}' listed twice in info file", row=row, recipe=name)
            else:
                infos[name.lower()] = record
        ingredient_rows = self._group(ingredient_table, result)
        for key in ingredient_rows:
            if key not in infos:
                row, record = ingredient_rows[key][0]
                result.skip("No matching recipe in info file", row=row, recipe=record["recipename"].strip())

        for key, info in infos.items():
            name = info["recipename"].strip()
            if self.recipes.find_by_name(name):
                result.skip(f"Recipe '{name}' already exists", recipe=name)
                continue
            rows = ingredient_rows.get(key, [])
            if not rows:
                result.skip("No ingredients", recipe=name)
                continue
            taken: set = set()
            ingredients = [ing for ing in (self._ingredient_from(record, row, name, taken, result)
                                           for row, record in rows) if ing]
            if not ingredients:
                result.skip("No ingredients could be matched to products", recipe=name)
                continue
            self._create(name, info, ingredients, result)
        logger.info(f"Two-file recipe import: {result.imported_count} recipes, {len(result.skipped)} skipped")
        return result

    def import_recipe_only(self, text: str) -> ImportResult:
        table = CsvTable(text, RECIPE_ONLY_HEADERS, label="Recipe-only CSV")
        result = ImportResult()
        seen = set()
        for row, record in table.records():
            name = record["recipename"].strip()
            if not name:
                result.skip("Missing recipe name", row=row)
                continue
            if not record["ingredientstext"].strip():
                result.skip("Missing ingredients text", row=row, recipe=name)
                continue
            if name.lower() in seen or self.recipes.find_by_name(name):
                result.skip(f"Recipe '{name}' already exists", row=row, recipe=name)
                continue
            seen.add(name.lower())
            self._create(name, record, [], result, ingredients_text=record["ingredientstext"])
        logger.info(f"Recipe-only import: {result.imported_count} recipes, {len(result.skipped)} skipped")
        return result
