from fastapi import APIRouter, Depends

from kitchen.api.deps import get_kitchen
from kitchen.domain.errors import EmptyName
from kitchen.logic.parsing.ingredient_text import parse_ingredients_text, resolve_ingredients
from kitchen.logic.parsing.recipe_timers import parse_recipe_timers
from kitchen.utilities.validators import IngredientTextInput, RecipeIngredientInput, RecipeInput

router = APIRouter(prefix="/api/recipes", tags=["recipes"])


def _recipe_payload(kitchen, recipe) -> dict:
    data = recipe.to_dict()
    data["availability"] = kitchen.recipes.get_availability(recipe)
    return data


@router.get("")
def list_recipes(search: str = "", cuisine: str = "", main_ingredient: str = "", season: str = "",
                 kitchen=Depends(get_kitchen)):
    recipes = kitchen.recipes.search(search, cuisine, main_ingredient, season)
    return [_recipe_payload(kitchen, r) for r in recipes]


@router.get("/vocabulary")
def vocabulary(kitchen=Depends(get_kitchen)):
    store = kitchen.recipes
    return {"units": sorted(store.units), "cuisines": sorted(store.cuisines), "seasons": sorted(store.seasons)}


@router.get("/statistics")
def recipe_statistics(kitchen=Depends(get_kitchen)):
    return kitchen.recipes.statistics()


@router.post("/parse-ingredients")
def parse_ingredients(payload: IngredientTextInput, kitchen=Depends(get_kitchen)):
    """Parse free text and match each line to an existing product."""
    resolved = resolve_ingredients(payload.text, kitchen.products.get_all())
    resolved["parsed"] = parse_ingredients_text(payload.text)
    return resolved


@router.post("", status_code=201)
def add_recipe(payload: RecipeInput, kitchen=Depends(get_kitchen)):
    fields = payload.fields()
    name = fields.pop("name", "")
    if not name:
        raise EmptyName("Recipe name cannot be empty")
    return _recipe_payload(kitchen, kitchen.recipes.add(name, **fields))


@router.get("/{recipe_id}")
def get_recipe(recipe_id: str, kitchen=Depends(get_kitchen)):
    recipe = kitchen.recipes.require(recipe_id)
    data = _recipe_payload(kitchen, recipe)
    data["ingredientDetails"] = kitchen.recipes.ingredient_details(recipe)
    return data


@router.put("/{recipe_id}")
def edit_recipe(recipe_id: str, payload: RecipeInput, kitchen=Depends(get_kitchen)):
    return _recipe_payload(kitchen, kitchen.recipes.edit(recipe_id, **payload.fields()))


@router.delete("/{recipe_id}")
def delete_recipe(recipe_id: str, kitchen=Depends(get_kitchen)):
    return {"deleted": kitchen.recipes.delete(recipe_id).id}


@router.get("/{recipe_id}/availability")
def recipe_availability(recipe_id: str, kitchen=Depends(get_kitchen)):
    return kitchen.recipes.get_availability(kitchen.recipes.require(recipe_id))


@router.post("/{recipe_id}/ingredients")
def add_ingredient(recipe_id: str, payload: RecipeIngredientInput, kitchen=Depends(get_kitchen)):
    line = payload.to_dict()
    recipe = kitchen.recipes.add_ingredient(recipe_id, line["productId"], line["quantity"], line["unit"])
    return _recipe_payload(kitchen, recipe)


@router.delete("/{recipe_id}/ingredients/{product_id}")
def remove_ingredient(recipe_id: str, product_id: str, kitchen=Depends(get_kitchen)):
    return _recipe_payload(kitchen, kitchen.recipes.remove_ingredient(recipe_id, product_id))


@router.post("/{recipe_id}/shopping")
def add_recipe_to_shopping(recipe_id: str, kitchen=Depends(get_kitchen)):
    added = kitchen.recipes.add_ingredients_to_shopping(recipe_id)
    return {"added": [p.id for p in added]}


@router.get("/{recipe_id}/timers")
def recipe_timers(recipe_id: str, kitchen=Depends(get_kitchen)):
    """Timer suggestions found in the preparation text."""
    return parse_recipe_timers(kitchen.recipes.require(recipe_id).preparation)
