"""Recipe store: recipes reference Products through ingredient lines.

Legacy records are upgraded once at load (metadata inferred from the name,
name-only ingredient lines resolved to product ids) and the upgraded set is
persisted. Stores that keep recipe references (the meal plan) register as
dependents and are told when a recipe is deleted.
"""
import logging
from typing import Dict, Iterable, List, Optional

from kitchen.domain.Ingredient import Ingredient
from kitchen.domain.Recipe import Recipe
from kitchen.domain.Product import normalize_id
from kitchen.domain.errors import DuplicateName, EmptyName, InvalidReference, InvalidValue, NotFound
from kitchen.events.Event_Bus import GLOBAL_EVENT_BUS, RECIPES_CHANGED
from kitchen.utilities.constants import (
    BASE_CUISINES, BASE_SEASONS, BASE_UNITS, DEFAULT_COOK_TIME, DEFAULT_CUISINE, DEFAULT_MAIN_INGREDIENT,
    DEFAULT_PERSONS, DEFAULT_PREP_TIME, DEFAULT_SEASON, MAX_UNIT_LENGTH, RECIPES_KEY, SAMPLE_RECIPES,
)

logger = logging.getLogger(__name__)

AVAILABLE = "available"
PARTIAL = "partial"
UNAVAILABLE = "unavailable"


def infer_metadata(name: str, description: str = "") -> Dict[str, str]:
    """Keyword guess of cuisine/main ingredient/season for records saved before metadata existed."""
    cuisine, main_ingredient, season = DEFAULT_CUISINE, DEFAULT_MAIN_INGREDIENT, DEFAULT_SEASON
    lowered_name = (name or "").lower()
    lowered_description = (description or "").lower()
    if "pasta" in lowered_name or "italian" in lowered_name:
        cuisine, main_ingredient = "Italian", "pasta"
    elif "chicken" in lowered_name:
        cuisine, main_ingredient = "American", "chicken"
    elif "rice" in lowered_name:
        cuisine, main_ingredient = "Asian", "rice"
    elif "soup" in lowered_name or "vegetable" in lowered_name:
        main_ingredient = "vegetables"
        if "winter" in lowered_name or "winter" in lowered_description:
            season = "winter"
    return {"cuisine": cuisine, "mainIngredient": main_ingredient, "season": season}


def upgrade_metadata(recipes: Iterable[Recipe]) -> int:
    '''Fills in metadata on recipes that lack it; returns how many were upgraded.'''
    upgraded = 0
    for recipe in recipes:
        if recipe.metadata is None:
            recipe.metadata = infer_metadata(recipe.name, recipe.description)
            upgraded += 1
    return upgraded


def availability_status(available_count: int, total_count: int) -> str:
    if total_count > 0 and available_count == total_count:
        return AVAILABLE
    if available_count == 0:
        return UNAVAILABLE
    return PARTIAL


class RecipeStore:
    def __init__(self, storage, products, event_bus=None):
        self._storage = storage
        self._products = products
        self._event_bus = event_bus or GLOBAL_EVENT_BUS
        self._dependents = []
        self.recipes: List[Recipe] = self._load()
        self.units = set(BASE_UNITS)
        self.cuisines = set(BASE_CUISINES)
        self.seasons = set(BASE_SEASONS)
        for recipe in self.recipes:
            self.units.update(ing.unit for ing in recipe.ingredients if ing.unit)
            meta = recipe.metadata or {}
            if meta.get("cuisine"):
                self.cuisines.add(meta["cuisine"])
            if meta.get("season"):
                self.seasons.add(meta["season"])

    # --- persistence ----------------------------------------------------------
    def _load(self) -> List[Recipe]:
        saved = self._storage.load_collection(RECIPES_KEY, default=[])
        if not isinstance(saved, list):
            saved = []
        if not saved and not self._storage.is_initialized(RECIPES_KEY):
            logger.info("New user - seeding sample recipes")
            self._storage.mark_initialized(RECIPES_KEY)
            # samples reference the sample products; only seed what resolves
            recipes = [Recipe.from_dict(r) for r in SAMPLE_RECIPES
                       if all(self._products.get(i["productId"]) for i in r["ingredients"])]
            self._storage.save_collection(RECIPES_KEY, [r.to_dict() for r in recipes])
            return recipes

        recipes = [Recipe.from_dict(r) for r in saved if isinstance(r, dict)]
        upgraded = upgrade_metadata(recipes)
        resolved = self._upgrade_ingredients(recipes)
        if upgraded or resolved:
            logger.info(f"Upgraded {upgraded} recipes with metadata, resolved {resolved} name-only ingredients")
            self._storage.save_collection(RECIPES_KEY, [r.to_dict() for r in recipes])
        return recipes

    def _upgrade_ingredients(self, recipes: Iterable[Recipe]) -> int:
        resolved = 0
        for recipe in recipes:
            for ingredient in recipe.ingredients:
                if ingredient.product_id or not ingredient.product_name:
                    continue
                product = self._products.find_by_name(ingredient.product_name)
                if product:
                    ingredient.product_id = product.id
                    resolved += 1
        return resolved

    def save(self) -> bool:
        return self._storage.save_collection(RECIPES_KEY, [r.to_dict() for r in self.recipes])

    def _changed(self, action: str, recipe_id: str):
        self.save()
        self._event_bus.publish(RECIPES_CHANGED, {"action": action, "recipe_id": recipe_id})

    def register_dependent(self, dependent):
        '''`dependent.remove_recipe_from_all_plans(recipe_id)` is called on delete.'''
        if dependent not in self._dependents:
            self._dependents.append(dependent)
        return self

    def _next_id(self) -> str:
        numbers = [int(r.id) for r in self.recipes if r.id.isdigit()]
        return str(max(numbers, default=0) + 1)

    # --- queries ----------------------------------------------------------------
    def get_all(self) -> List[Recipe]:
        return self.recipes

    def count(self) -> int:
        return len(self.recipes)

    def get(self, recipe_id) -> Optional[Recipe]:
        key = normalize_id(recipe_id)
        for recipe in self.recipes:
            if recipe.id == key:
                return recipe
        return None

    def require(self, recipe_id) -> Recipe:
        recipe = self.get(recipe_id)
        if recipe is None:
            raise NotFound(f"Recipe '{recipe_id}' not found", recipe_id=normalize_id(recipe_id))
        return recipe

    def find_by_name(self, name: str) -> Optional[Recipe]:
        key = (name or "").strip().lower()
        for recipe in self.recipes:
            if recipe.name.lower() == key:
                return recipe
        return None

    def search(self, query: str = "", cuisine: str = "", main_ingredient: str = "", season: str = "") -> List[Recipe]:
        term = (query or "").strip().lower()
        results = []
        for recipe in self.recipes:
            meta = recipe.metadata or {}
            if term and term not in recipe.name.lower() and term not in recipe.description.lower():
                continue
            if cuisine and meta.get("cuisine", "").lower() != cuisine.lower():
                continue
            if main_ingredient and meta.get("mainIngredient", "").lower() != main_ingredient.lower():
                continue
            # all-year recipes fit every season filter
            if season and meta.get("season", DEFAULT_SEASON) not in (season, DEFAULT_SEASON):
                continue
            results.append(recipe)
        return results

    def recipes_for_product(self, product) -> List[Recipe]:
        return [r for r in self.recipes if r.uses_product(product)]

    # --- validation ---------------------------------------------------------------
    def _clean_name(self, name) -> str:
        trimmed = name.strip() if isinstance(name, str) else ""
        if not trimmed:
            raise EmptyName("Recipe name cannot be empty")
        return trimmed

    def _check_duplicate(self, name: str, exclude_id: Optional[str] = None):
        existing = self.find_by_name(name)
        if existing and existing.id != exclude_id:
            logger.warning(f"Recipe '{name}' already exists")
            raise DuplicateName(f"Recipe '{name}' already exists", name=name, recipe_id=existing.id)

    def _build_ingredients(self, lines: Iterable) -> List[Ingredient]:
        """Validate ingredient lines: known product, positive quantity, one line per product."""
        ingredients: List[Ingredient] = []
        seen = set()
        for line in lines or []:
            ingredient = line if isinstance(line, Ingredient) else Ingredient.from_dict(line)
            product = self._products.get(ingredient.product_id)
            if product is None:
                raise InvalidReference(f"Ingredient references unknown product '{ingredient.product_id}'",
                                       product_id=ingredient.product_id)
            if ingredient.product_id in seen:
                raise DuplicateName(f"Product '{product.name}' is listed twice", product_id=product.id)
            self._check_quantity(ingredient.quantity)
            ingredient.product_name = product.name
            seen.add(ingredient.product_id)
            ingredients.append(ingredient)
        return ingredients

    @staticmethod
    def _check_quantity(quantity):
        if isinstance(quantity, bool) or not isinstance(quantity, (int, float)) or quantity <= 0:
            raise InvalidValue("Quantity must be greater than 0", quantity=quantity)

    # --- CRUD ---------------------------------------------------------------------
    def add(self, name: str, description: str = "", preparation: str = "", ingredients: Iterable = (),
            ingredients_text: str = "", persons: int = DEFAULT_PERSONS, image: str = "",
            metadata: Optional[Dict[str, str]] = None, cook_time: str = "", prep_time: str = "",
            allergens: str = "", gluten_free: bool = False, comments: str = "") -> Recipe:
        trimmed = self._clean_name(name)
        self._check_duplicate(trimmed)
        recipe = Recipe(
            id=self._next_id(),
            name=trimmed,
            description=description or "",
            preparation=preparation or "",
            ingredients=self._build_ingredients(ingredients),
            ingredients_text=ingredients_text or "",
            persons=persons or DEFAULT_PERSONS,
            image=image or "",
            metadata=self._complete_metadata(metadata),
            cook_time=cook_time or DEFAULT_COOK_TIME,
            prep_time=prep_time or DEFAULT_PREP_TIME,
            allergens=allergens or "",
            gluten_free=bool(gluten_free),
            comments=comments or "",
        )
        self.recipes.append(recipe)
        self._register_vocabulary(recipe)
        self._changed("added", recipe.id)
        self._products.refresh_recipe_counts(self.recipes)
        logger.info(f"Added recipe: {recipe.name}")
        return recipe

    def edit(self, recipe_id, **fields) -> Recipe:
        """Replace the given fields; `ingredients` and `metadata` are replaced whole."""
        recipe = self.require(recipe_id)
        allowed = {"name", "description", "preparation", "ingredients", "ingredients_text",
                   "persons", "image", "metadata", "cook_time", "prep_time", "allergens",
                   "gluten_free", "comments"}
        unknown = set(fields) - allowed
        if unknown:
            raise InvalidValue(f"Unknown recipe fields: {', '.join(sorted(unknown))}")
        name = None
        if fields.get("name") is not None:
            name = self._clean_name(fields["name"])
            self._check_duplicate(name, exclude_id=recipe.id)
        ingredients = None
        if fields.get("ingredients") is not None:
            ingredients = self._build_ingredients(fields["ingredients"])

        if name is not None:
            recipe.name = name
        if ingredients is not None:
            recipe.ingredients = ingredients
        for key in ("description", "preparation", "ingredients_text", "image",
                    "cook_time", "prep_time", "allergens", "comments"):
            if fields.get(key) is not None:
                setattr(recipe, key, fields[key])
        if fields.get("gluten_free") is not None:
            recipe.gluten_free = bool(fields["gluten_free"])
        if fields.get("persons") is not None:
            recipe.persons = int(fields["persons"]) or DEFAULT_PERSONS
        if fields.get("metadata") is not None:
            recipe.metadata = self._complete_metadata(fields["metadata"])
        recipe.version += 1
        self._register_vocabulary(recipe)
        self._changed("edited", recipe.id)
        self._products.refresh_recipe_counts(self.recipes)
        return recipe

    def delete(self, recipe_id) -> Recipe:
        recipe = self.require(recipe_id)
        self.recipes = [r for r in self.recipes if r.id != recipe.id]
        self._changed("deleted", recipe.id)
        for dependent in self._dependents:
            dependent.remove_recipe_from_all_plans(recipe.id)
        self._products.refresh_recipe_counts(self.recipes)
        logger.info(f"Deleted recipe: {recipe.name}")
        return recipe

    def _complete_metadata(self, metadata: Optional[Dict[str, str]]) -> Dict[str, str]:
        meta = dict(metadata or {})
        meta["cuisine"] = meta.get("cuisine") or DEFAULT_CUISINE
        meta["mainIngredient"] = meta.get("mainIngredient") or DEFAULT_MAIN_INGREDIENT
        meta["season"] = meta.get("season") or DEFAULT_SEASON
        return meta

    # --- ingredient lines -------------------------------------------------------------
    def add_ingredient(self, recipe_id, product_id, quantity=1, unit: str = "pcs") -> Recipe:
        recipe = self.require(recipe_id)
        product = self._products.require(product_id)
        self._check_quantity(quantity)
        existing = recipe.find_ingredient(product.id)
        if existing:
            existing.quantity = quantity
            existing.unit = unit
        else:
            recipe.ingredients.append(Ingredient(product.id, quantity, unit, product.name))
        self.register_unit(unit)
        recipe.version += 1
        self._changed("ingredients", recipe.id)
        self._products.refresh_recipe_counts(self.recipes)
        return recipe

    def update_ingredient(self, recipe_id, product_id, quantity=None, unit: Optional[str] = None) -> Recipe:
        recipe = self.require(recipe_id)
        ingredient = recipe.find_ingredient(product_id)
        if ingredient is None:
            raise NotFound(f"Recipe '{recipe.name}' has no ingredient '{product_id}'", product_id=normalize_id(product_id))
        if quantity is not None:
            self._check_quantity(quantity)
            ingredient.quantity = quantity
        if unit:
            ingredient.unit = unit
            self.register_unit(unit)
        recipe.version += 1
        self._changed("ingredients", recipe.id)
        return recipe

    def remove_ingredient(self, recipe_id, product_id) -> Recipe:
        recipe = self.require(recipe_id)
        key = normalize_id(product_id)
        if recipe.find_ingredient(key) is None:
            raise NotFound(f"Recipe '{recipe.name}' has no ingredient '{product_id}'", product_id=key)
        recipe.ingredients = [i for i in recipe.ingredients if i.product_id != key]
        recipe.version += 1
        self._changed("ingredients", recipe.id)
        self._products.refresh_recipe_counts(self.recipes)
        return recipe

    def ingredient_details(self, recipe) -> List[dict]:
        '''Each line joined with its Product; missing products are reported, not dropped.'''
        details = []
        for ingredient in recipe.ingredients:
            product = self._products.get(ingredient.product_id)
            if product is None and ingredient.product_name:
                product = self._products.find_by_name(ingredient.product_name)
            details.append({
                "productId": ingredient.product_id,
                "name": product.name if product else (ingredient.product_name or "Unknown product"),
                "quantity": ingredient.quantity,
                "unit": ingredient.unit,
                "inStock": bool(product and product.in_stock),
                "missing": product is None,
            })
        return details

    def get_availability(self, recipe) -> dict:
        total = len(recipe.ingredients)
        available = 0
        for ingredient in recipe.ingredients:
            product = self._products.get(ingredient.product_id)
            if product is None and ingredient.product_name:
                product = self._products.find_by_name(ingredient.product_name)
            if product is not None and product.in_stock:
                available += 1
        return {
            "availableCount": available,
            "totalCount": total,
            "status": availability_status(available, total),
        }

    def add_ingredients_to_shopping(self, recipe_id) -> List:
        recipe = self.require(recipe_id)
        added = []
        for ingredient in recipe.ingredients:
            product = self._products.get(ingredient.product_id)
            if product is None:
                logger.warning(f"Recipe '{recipe.name}' references missing product {ingredient.product_id}")
                continue
            if not product.in_shopping:
                self._products.add_to_shopping(product.id)
                added.append(product)
        return added

    # --- vocabularies ----------------------------------------------------------------
    def register_unit(self, unit: str) -> bool:
        '''Accepts a new unit up to MAX_UNIT_LENGTH characters; True when it was new.'''
        unit = (unit or "").strip()
        if not unit or len(unit) > MAX_UNIT_LENGTH or unit in self.units:
            return False
        self.units.add(unit)
        logger.info(f"Registered new unit '{unit}'")
        return True

    def register_cuisine(self, cuisine: str) -> bool:
        cuisine = (cuisine or "").strip()
        if not cuisine or cuisine in self.cuisines:
            return False
        self.cuisines.add(cuisine)
        return True

    def register_season(self, season: str) -> bool:
        season = (season or "").strip()
        if not season or season in self.seasons:
            return False
        self.seasons.add(season)
        return True

    def _register_vocabulary(self, recipe: Recipe):
        for ingredient in recipe.ingredients:
            self.register_unit(ingredient.unit)
        meta = recipe.metadata or {}
        self.register_cuisine(meta.get("cuisine", ""))
        self.register_season(meta.get("season", ""))

    # --- bulk ------------------------------------------------------------------------
    def put_record(self, recipe: Recipe, notify: bool = True):
        upgrade_metadata([recipe])
        for index, existing in enumerate(self.recipes):
            if existing.id == recipe.id:
                self.recipes[index] = recipe
                break
        else:
            self.recipes.append(recipe)
        self._register_vocabulary(recipe)
        if notify:
            self._changed("put", recipe.id)
        else:
            self.save()

    def drop_record(self, recipe_id, notify: bool = True) -> bool:
        key = normalize_id(recipe_id)
        before = len(self.recipes)
        self.recipes = [r for r in self.recipes if r.id != key]
        if len(self.recipes) == before:
            return False
        if notify:
            self._changed("deleted", key)
        else:
            self.save()
        return True

    def replace_all(self, recipes: List[Recipe]):
        self.recipes = list(recipes)
        upgrade_metadata(self.recipes)
        for recipe in self.recipes:
            self._register_vocabulary(recipe)
        self._changed("replaced", "")
        self._products.refresh_recipe_counts(self.recipes)

    def restore_all(self, raw_recipes: Iterable) -> List[dict]:
        """Replace every recipe from exported records, keeping the ones that validate.

        Records without a name, or whose id or name (ignoring case) was already
        taken by an earlier record, are skipped. Ingredient lines must point at
        a known product, once per product, with a positive quantity; other lines
        are dropped. Returns the skip list with a reason per entry.
        """
        skipped: List[dict] = []
        kept: List[Recipe] = []
        ids, names = set(), set()
        for index, raw in enumerate(raw_recipes or []):
            if not isinstance(raw, dict):
                skipped.append({"index": index, "reason": "Not a recipe record"})
                continue
            recipe = Recipe.from_dict(raw)
            name = recipe.name.strip() if isinstance(recipe.name, str) else ""
            if not name:
                skipped.append({"index": index, "reason": "Missing recipe name"})
                continue
            if name.lower() in names:
                skipped.append({"index": index, "recipe": name, "reason": f"Recipe '{name}' listed twice"})
                continue
            if recipe.id in ids:
                skipped.append({"index": index, "recipe": name, "reason": f"Recipe id '{recipe.id}' listed twice"})
                continue
            recipe.name = name
            recipe.ingredients = self._restorable_ingredients(recipe, index, skipped)
            if recipe.id:
                ids.add(recipe.id)
            names.add(name.lower())
            kept.append(recipe)

        # records exported without an id get the next free one
        next_number = max((int(i) for i in ids if i.isdigit()), default=0)
        for recipe in kept:
            if not recipe.id:
                next_number += 1
                recipe.id = str(next_number)
        self.replace_all(kept)
        if skipped:
            logger.warning(f"Recipe restore skipped {len(skipped)} records or lines")
        return skipped

    def _restorable_ingredients(self, recipe: Recipe, index: int, skipped: List[dict]) -> List[Ingredient]:
        kept: List[Ingredient] = []
        seen = set()
        for ingredient in recipe.ingredients:
            product = self._products.get(ingredient.product_id) if ingredient.product_id else None
            if product is None and ingredient.product_name:
                product = self._products.find_by_name(ingredient.product_name)
            quantity = ingredient.quantity
            if product is None:
                reason = f"Unknown product '{ingredient.product_id or ingredient.product_name}'"
            elif product.id in seen:
                reason = f"Product '{product.name}' listed twice"
            elif isinstance(quantity, bool) or not isinstance(quantity, (int, float)) or quantity <= 0:
                reason = f"Invalid quantity {quantity!r} for '{product.name}'"
            else:
                ingredient.product_id = product.id
                ingredient.product_name = product.name
                seen.add(product.id)
                kept.append(ingredient)
                continue
            skipped.append({"index": index, "recipe": recipe.name, "reason": reason})
        return kept

    def statistics(self) -> dict:
        by_cuisine: Dict[str, int] = {}
        by_status = {AVAILABLE: 0, PARTIAL: 0, UNAVAILABLE: 0}
        for recipe in self.recipes:
            cuisine = (recipe.metadata or {}).get("cuisine", DEFAULT_CUISINE)
            by_cuisine[cuisine] = by_cuisine.get(cuisine, 0) + 1
            by_status[self.get_availability(recipe)["status"]] += 1
        total_ingredients = sum(len(r.ingredients) for r in self.recipes)
        return {
            "totalRecipes": len(self.recipes),
            "byCuisine": by_cuisine,
            "byAvailability": by_status,
            "averageIngredients": round(total_ingredients / len(self.recipes), 1) if self.recipes else 0,
        }
