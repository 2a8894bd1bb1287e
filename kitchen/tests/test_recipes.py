import unittest

from kitchen.domain.Recipe import Recipe
from kitchen.domain.errors import DuplicateName, EmptyName, InvalidReference, InvalidValue, NotFound
from kitchen.events.Event_Bus import RECIPES_CHANGED
from kitchen.infra.Local_Storage import InMemoryStorage
from kitchen.logic.recipes.store import (
    AVAILABLE, PARTIAL, UNAVAILABLE, availability_status, infer_metadata,
)
from kitchen.tests.support import EventRecorder, make_kitchen
from kitchen.utilities.constants import RECIPES_KEY


class TestMetadataInference(unittest.TestCase):

    def test_keyword_rules(self):
        self.assertEqual(infer_metadata("Pasta Carbonara")["cuisine"], "Italian")
        self.assertEqual(infer_metadata("Fried Chicken")["mainIngredient"], "chicken")
        self.assertEqual(infer_metadata("Egg Fried Rice")["cuisine"], "Asian")
        winter = infer_metadata("Vegetable Soup", "A warming winter dish")
        self.assertEqual(winter, {"cuisine": "International", "mainIngredient": "vegetables", "season": "winter"})
        self.assertEqual(infer_metadata("Toast"),
                         {"cuisine": "International", "mainIngredient": "mixed", "season": "all-year"})

    def test_availability_status(self):
        self.assertEqual(availability_status(2, 2), AVAILABLE)
        self.assertEqual(availability_status(1, 2), PARTIAL)
        self.assertEqual(availability_status(0, 2), UNAVAILABLE)
        self.assertEqual(availability_status(0, 0), UNAVAILABLE)


class TestRecipeStore(unittest.TestCase):

    def setUp(self):
        self.kitchen = make_kitchen()
        self.products = self.kitchen.products
        self.recipes = self.kitchen.recipes

    def test_samples_seeded(self):
        self.assertEqual([r.name for r in self.recipes.get_all()], ["Simple Pasta", "Chicken Salad"])

    def test_soup_availability(self):
        onion = self.products.add("Onion", "cat_001")
        soup = self.recipes.add("Soup", ingredients=[{"productId": onion.id, "quantity": 2, "unit": "pcs"}])
        self.assertEqual(self.recipes.get_availability(soup)["status"], UNAVAILABLE)
        self.products.toggle_in_stock(onion.id)
        availability = self.recipes.get_availability(soup)
        self.assertEqual(availability, {"availableCount": 1, "totalCount": 1, "status": AVAILABLE})
        self.assertEqual(onion.recipe_count, 1)

    def test_partial_availability(self):
        olive_oil = self.products.find_by_name("olive oil")
        milk = self.products.find_by_name("milk")
        recipe = self.recipes.add("Dressing", ingredients=[
            {"productId": olive_oil.id, "quantity": 3, "unit": "tbsp"},
            {"productId": milk.id, "quantity": 50, "unit": "ml"},
        ])
        self.assertEqual(self.recipes.get_availability(recipe)["status"], PARTIAL)

    def test_add_validates_ingredients(self):
        milk = self.products.find_by_name("milk")
        with self.assertRaises(InvalidReference):
            self.recipes.add("Ghost", ingredients=[{"productId": "999", "quantity": 1, "unit": "g"}])
        with self.assertRaises(DuplicateName):
            self.recipes.add("Twice", ingredients=[
                {"productId": milk.id, "quantity": 1, "unit": "l"},
                {"productId": milk.id, "quantity": 2, "unit": "l"},
            ])
        with self.assertRaises(InvalidValue):
            self.recipes.add("Nothing", ingredients=[{"productId": milk.id, "quantity": 0, "unit": "l"}])
        self.assertEqual(self.recipes.count(), 2)

    def test_add_rejects_empty_and_duplicate_names(self):
        with self.assertRaises(EmptyName):
            self.recipes.add("  ")
        with self.assertRaises(DuplicateName):
            self.recipes.add("simple pasta")

    def test_add_fills_default_metadata(self):
        recipe = self.recipes.add("Toast", metadata={"cuisine": "Dutch"})
        self.assertEqual(recipe.metadata, {"cuisine": "Dutch", "mainIngredient": "mixed", "season": "all-year"})
        self.assertEqual(recipe.persons, 4)

    def test_edit_replaces_ingredients_and_recounts(self):
        pasta = self.recipes.find_by_name("Simple Pasta")
        milk = self.products.find_by_name("milk")
        olive_oil = self.products.find_by_name("olive oil")
        self.recipes.edit(pasta.id, ingredients=[{"productId": milk.id, "quantity": 1, "unit": "cup"}], persons=3)
        self.assertEqual(pasta.persons, 3)
        self.assertEqual([i.product_id for i in pasta.ingredients], [milk.id])
        self.assertEqual(milk.recipe_count, 1)
        self.assertEqual(olive_oil.recipe_count, 0)
        with self.assertRaises(InvalidValue):
            self.recipes.edit(pasta.id, colour="red")

    def test_ingredient_lines(self):
        pasta = self.recipes.find_by_name("Simple Pasta")
        bread = self.products.find_by_name("bread")
        self.recipes.add_ingredient(pasta.id, bread.id, 2, "slice")
        self.recipes.add_ingredient(pasta.id, bread.id, 3, "slice")
        line = pasta.find_ingredient(bread.id)
        self.assertEqual(line.quantity, 3)
        self.assertEqual(len(pasta.ingredients), 2)
        self.recipes.update_ingredient(pasta.id, bread.id, unit="loaf")
        self.assertEqual(line.unit, "loaf")
        self.assertIn("loaf", self.recipes.units)
        self.recipes.remove_ingredient(pasta.id, bread.id)
        self.assertIsNone(pasta.find_ingredient(bread.id))
        with self.assertRaises(NotFound):
            self.recipes.remove_ingredient(pasta.id, bread.id)

    def test_delete_publishes_and_recounts(self):
        recorder = EventRecorder(self.kitchen.event_bus, RECIPES_CHANGED)
        salad = self.recipes.find_by_name("Chicken Salad")
        self.recipes.delete(salad.id)
        self.assertEqual(recorder.events[-1], (RECIPES_CHANGED, {"action": "deleted", "recipe_id": salad.id}))
        self.assertEqual(self.products.find_by_name("chicken breast").recipe_count, 0)
        with self.assertRaises(NotFound):
            self.recipes.delete(salad.id)

    def test_search_filters(self):
        self.recipes.add("Winter Stew", metadata={"season": "winter", "cuisine": "Dutch"})
        self.assertEqual([r.name for r in self.recipes.search("pasta")], ["Simple Pasta"])
        self.assertEqual([r.name for r in self.recipes.search(cuisine="dutch")], ["Winter Stew"])
        winter = [r.name for r in self.recipes.search(season="winter")]
        self.assertEqual(sorted(winter), ["Chicken Salad", "Simple Pasta", "Winter Stew"])
        self.assertEqual([r.name for r in self.recipes.search(season="summer")], ["Simple Pasta", "Chicken Salad"])

    def test_add_ingredients_to_shopping_skips_listed(self):
        salad = self.recipes.find_by_name("Chicken Salad")
        added = self.recipes.add_ingredients_to_shopping(salad.id)
        self.assertEqual([p.name for p in added], ["chicken breast"])
        self.assertEqual(self.recipes.add_ingredients_to_shopping(salad.id), [])

    def test_vocabulary_registration(self):
        self.assertTrue(self.recipes.register_unit("handful"))
        self.assertFalse(self.recipes.register_unit("handful"))
        self.assertFalse(self.recipes.register_unit("x" * 11))
        self.assertTrue(self.recipes.register_cuisine("Thai"))
        self.assertFalse(self.recipes.register_season("winter"))


class TestLegacyRecipes(unittest.TestCase):

    def test_metadata_and_name_only_ingredients_upgraded_on_load(self):
        storage = InMemoryStorage()
        storage.save_collection(RECIPES_KEY, [{
            "id": 3, "name": "Vegetable Soup", "description": "for winter",
            "ingredients": [{"name": "Milk", "quantity": "2", "unit": "cup"}],
        }])
        kitchen = make_kitchen(storage=storage)
        soup = kitchen.recipes.get("3")
        self.assertEqual(soup.metadata["mainIngredient"], "vegetables")
        self.assertEqual(soup.metadata["season"], "winter")
        self.assertEqual(soup.ingredients[0].product_id, kitchen.products.find_by_name("milk").id)
        self.assertEqual(soup.ingredients[0].quantity, 2)
        saved = storage.load_collection(RECIPES_KEY)
        self.assertIsNotNone(saved[0]["metadata"])




class TestRecipeDetails(unittest.TestCase):

    def setUp(self):
        self.kitchen = make_kitchen()
        self.recipes = self.kitchen.recipes

    def test_new_recipe_gets_default_times(self):
        toast = self.recipes.add("Toast")
        self.assertEqual((toast.cook_time, toast.prep_time), ("30 min", "15 min"))
        self.assertEqual(toast.allergens, "")
        self.assertFalse(toast.gluten_free)

    def test_details_are_edited_and_saved(self):
        toast = self.recipes.add("Toast", cook_time="5 min", allergens="gluten")
        self.recipes.edit(toast.id, prep_time="2 min", gluten_free=True, comments="Use stale bread")
        saved = self.recipes.get(toast.id).to_dict()
        self.assertEqual(saved["cookTime"], "5 min")
        self.assertEqual(saved["prepTime"], "2 min")
        self.assertEqual(saved["allergens"], "gluten")
        self.assertTrue(saved["glutenFree"])
        self.assertEqual(saved["comments"], "Use stale bread")
        reloaded = make_kitchen(storage=self.kitchen.storage).recipes.get(toast.id)
        self.assertEqual(reloaded.prep_time, "2 min")
        self.assertTrue(reloaded.gluten_free)

    def test_unreadable_version_defaults_to_zero(self):
        self.assertEqual(Recipe.from_dict({"id": "1", "name": "x", "version": "abc"}).version, 0)
        self.assertEqual(Recipe.from_dict({"id": "1", "name": "x", "version": [2]}).version, 0)
        self.assertEqual(Recipe.from_dict({"id": "1", "name": "x", "version": "4"}).version, 4)
        self.assertTrue(Recipe.from_dict({"id": "1", "name": "x", "glutenFree": "TRUE"}).gluten_free)


if __name__ == "__main__":
    unittest.main()
