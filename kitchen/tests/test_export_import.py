import os
import tempfile
import unittest

from kitchen.logic.importing.csv_reader import parse_csv_with_quotes
from kitchen.logic.importing.product_import import import_products_csv
from kitchen.tests.support import make_kitchen
from kitchen.utilities.export_import import (
    DataExporter, DataImporter, product_csv_template, recipe_csv_template, recipe_info_template,
    recipe_ingredients_template, recipe_only_template,
)


class TestDataExport(unittest.TestCase):

    def setUp(self):
        self.kitchen = make_kitchen()
        olive_oil = self.kitchen.products.find_by_name("olive oil")
        self.kitchen.recipes.add("Dressing", preparation="Shake\nServe", persons=1,
                                 ingredients=[{"productId": olive_oil.id, "quantity": 3, "unit": "tbsp"}],
                                 metadata={"cuisine": "French"})
        pasta = self.kitchen.recipes.find_by_name("Simple Pasta")
        self.kitchen.meal_plan.set_meal(0, "dinner", {"type": "recipe", "id": pasta.id})

    def test_json_export_contains_every_collection(self):
        data = DataExporter(self.kitchen).export_json()
        self.assertEqual(len(data["categories"]), 7)
        self.assertEqual(len(data["products"]), 5)
        self.assertEqual(len(data["recipes"]), 3)
        self.assertEqual(data["mealPlans"]["2025-01-11"]["0"]["dinner"], {"type": "recipe", "id": "1"})
        self.assertNotIn("inPantry", data["products"][0])

    def test_json_file_round_trip(self):
        self.kitchen.products.add("Tea", "cat_004")
        with tempfile.TemporaryDirectory() as tmp:
            path = DataExporter(self.kitchen).write_json(os.path.join(tmp, "export.json"))
            fresh = make_kitchen()
            summary = DataImporter(fresh).import_file(path)
        self.assertEqual(summary, {"categories": 7, "products": 6, "recipes": 3, "mealPlans": 1, "skippedRecipes": []})
        self.assertIsNotNone(fresh.products.find_by_name("tea"))
        self.assertEqual(fresh.recipes.find_by_name("Dressing").preparation, "Shake\nServe")
        self.assertEqual(fresh.meal_plan.display_name(fresh.meal_plan.get_meal(0, "dinner")), "Simple Pasta")
        self.assertEqual(fresh.products.find_by_name("olive oil").recipe_count, 2)

    def test_partial_json_leaves_other_sections(self):
        summary = DataImporter(self.kitchen).import_json({"recipes": []})
        self.assertEqual(summary["recipes"], 0)
        self.assertEqual(self.kitchen.recipes.count(), 0)
        self.assertEqual(self.kitchen.products.count(), 5)
        with self.assertRaises(ValueError):
            DataImporter(self.kitchen).import_json(["not", "an", "object"])

    def test_products_csv_export_reimports(self):
        self.kitchen.products.add("Tea", "cat_004", pantry=True)
        text = DataExporter(self.kitchen).export_products_csv()
        rows = parse_csv_with_quotes(text)
        self.assertEqual(rows[0], ["name", "category", "inShopping", "inPantry", "inStock", "inSeason"])
        self.assertIn(["tea", "pantry", "FALSE", "TRUE", "FALSE", "TRUE"], rows)
        fresh = make_kitchen()
        result = import_products_csv(text, fresh.products, fresh.categories)
        self.assertEqual(result.imported_count, 1)
        self.assertEqual(len(result.skipped), 5)
        self.assertTrue(fresh.products.find_by_name("tea").pantry)

    def test_recipes_csv_export_reimports(self):
        text = DataExporter(self.kitchen).export_recipes_csv()
        fresh = make_kitchen()
        result = fresh.recipe_importer.import_single_file(text)
        self.assertEqual(result.imported_count, 1)
        self.assertEqual(len(result.skipped), 2)
        dressing = fresh.recipes.find_by_name("Dressing")
        self.assertEqual(dressing.preparation, "Shake\nServe")
        self.assertEqual(dressing.persons, 1)
        self.assertEqual(dressing.metadata["cuisine"], "French")
        self.assertEqual([(i.product_name, i.quantity, i.unit) for i in dressing.ingredients],
                         [("olive oil", 3, "tbsp")])


class TestTemplates(unittest.TestCase):

    def test_templates_import_cleanly(self):
        kitchen = make_kitchen()
        kitchen.products.add("flour", "cat_004")
        importer = kitchen.recipe_importer
        self.assertEqual(importer.import_single_file(recipe_csv_template()).imported_count, 1)
        kitchen.recipes.delete(kitchen.recipes.find_by_name("Pancakes").id)
        two_file = importer.import_two_files(recipe_info_template(), recipe_ingredients_template())
        self.assertEqual(two_file.imported_count, 1)
        kitchen.recipes.delete(kitchen.recipes.find_by_name("Pancakes").id)
        self.assertEqual(importer.import_recipe_only(recipe_only_template()).imported_count, 1)

    def test_product_template_headers(self):
        rows = parse_csv_with_quotes(product_csv_template())
        self.assertEqual(len(rows), 3)
        self.assertEqual(rows[1][0], "Apples")




class TestRecipeRestore(unittest.TestCase):

    def setUp(self):
        self.kitchen = make_kitchen()

    def test_invalid_records_and_lines_are_skipped(self):
        data = {"recipes": [
            {"id": "10", "name": "Toast", "ingredients": [
                {"productId": "3", "quantity": 2, "unit": "slices"},
                {"productId": "3", "quantity": 1, "unit": "slices"},
                {"productId": "2", "quantity": 0, "unit": "ml"},
                {"productId": "4", "quantity": -1, "unit": "tbsp"},
                {"productId": "999", "quantity": 1, "unit": "pcs"},
            ]},
            {"id": "10", "name": "Other Toast", "ingredients": []},
            {"id": "11", "name": "  TOAST ", "ingredients": []},
            {"id": "12", "name": "", "ingredients": []},
            "not a recipe",
        ]}
        summary = DataImporter(self.kitchen).import_json(data)
        self.assertEqual(summary["recipes"], 1)
        toast = self.kitchen.recipes.get("10")
        self.assertEqual(toast.name, "Toast")
        self.assertEqual([(i.product_id, i.quantity) for i in toast.ingredients], [("3", 2)])
        reasons = [entry["reason"] for entry in summary["skippedRecipes"]]
        self.assertEqual(reasons, [
            "Product 'bread' listed twice",
            "Invalid quantity 0 for 'milk'",
            "Invalid quantity -1 for 'olive oil'",
            "Unknown product '999'",
            "Recipe id '10' listed twice",
            "Recipe 'TOAST' listed twice",
            "Missing recipe name",
            "Not a recipe record",
        ])
        self.assertEqual(self.kitchen.products.get("3").recipe_count, 1)

    def test_lines_are_matched_by_name_and_missing_ids_assigned(self):
        data = {"recipes": [
            {"id": "7", "name": "Fried Chicken", "ingredients": [{"productName": "Chicken Breast", "quantity": 1}]},
            {"name": "Plain Milk", "ingredients": [{"productId": 2, "quantity": 0.5, "unit": "l"}]},
        ]}
        summary = DataImporter(self.kitchen).import_json(data)
        self.assertEqual(summary["skippedRecipes"], [])
        fried = self.kitchen.recipes.find_by_name("Fried Chicken")
        self.assertEqual(fried.ingredients[0].product_id, "5")
        self.assertEqual(self.kitchen.recipes.find_by_name("Plain Milk").id, "8")


if __name__ == "__main__":
    unittest.main()
