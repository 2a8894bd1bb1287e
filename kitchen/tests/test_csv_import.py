import unittest

from kitchen.domain.errors import ParseError
from kitchen.logic.importing.csv_reader import (
    ImportResult, detect_separator, normalize_header, parse_boolean, parse_csv_with_quotes,
)
from kitchen.logic.importing.product_import import import_products_csv
from kitchen.tests.support import make_kitchen

PRODUCT_HEADER = "name,category,inShopping,inPantry,inStock,inSeason\n"


class TestCsvReader(unittest.TestCase):

    def test_quoted_fields_span_lines(self):
        text = 'a,b\n"1. Mix, well\n2. ""Bake""",x\n\n'
        self.assertEqual(parse_csv_with_quotes(text), [["a", "b"], ['1. Mix, well\n2. "Bake"', "x"]])

    def test_separator_detection(self):
        self.assertEqual(detect_separator("name;category;inStock"), ";")
        self.assertEqual(detect_separator("name,category"), ",")
        self.assertEqual(parse_csv_with_quotes("a;b\r\n1;2"), [["a", "b"], ["1", "2"]])

    def test_headers_and_booleans(self):
        self.assertEqual(normalize_header(' "Recipe Name" '), "recipename")
        self.assertEqual(normalize_header("in_stock"), "instock")
        for value in ("TRUE", "1", "yes", "Y"):
            self.assertTrue(parse_boolean(value), value)
        for value in ("false", "0", "", None, "nope"):
            self.assertFalse(parse_boolean(value), value)

    def test_result_shape(self):
        result = ImportResult()
        result.skip("bad", row=3, name="x")
        self.assertEqual(result.to_dict(), {
            "importedCount": 0, "updatedCount": 0, "skipped": [{"reason": "bad", "row": 3, "name": "x"}],
            "newUnits": [], "newCuisines": [], "newSeasons": [],
        })


class TestProductCsvImport(unittest.TestCase):

    def setUp(self):
        self.kitchen = make_kitchen()
        self.products = self.kitchen.products

    def run_import(self, rows, mode="replace"):
        return import_products_csv(PRODUCT_HEADER + rows, self.products, self.kitchen.categories, mode=mode)

    def test_valid_rows_created_invalid_categories_skipped(self):
        rows = (
            "Apples,produce,FALSE,TRUE,TRUE,TRUE\n"
            "Cheese,Dairy,TRUE,FALSE,FALSE,TRUE\n"
            "Steak,meat,FALSE,FALSE,FALSE,TRUE\n"
            "Soap,household,FALSE,FALSE,FALSE,TRUE\n"
            "Rice,cat_004,FALSE,TRUE,TRUE,TRUE\n"
            "Tea,drinks,FALSE,FALSE,FALSE,TRUE\n"
            "Peas,frozen,FALSE,FALSE,TRUE,FALSE\n"
        )
        result = self.run_import(rows)
        self.assertEqual(result.imported_count, 5)
        self.assertEqual([s["row"] for s in result.skipped], [5, 7])
        self.assertEqual(self.products.count(), 10)
        apples = self.products.find_by_name("apples")
        self.assertEqual(apples.category, "cat_001")
        self.assertTrue(apples.pantry and apples.in_stock and apples.in_season)
        self.assertFalse(apples.in_shopping)
        self.assertEqual(self.products.find_by_name("rice").category, "cat_004")
        self.assertFalse(self.products.find_by_name("peas").in_season)

    def test_replace_skips_existing_and_repeated_names(self):
        result = self.run_import("Milk,dairy,TRUE,FALSE,TRUE,TRUE\nKiwi,produce,0,0,0,1\nkiwi,produce,1,1,1,1\n")
        self.assertEqual(result.imported_count, 1)
        self.assertEqual(len(result.skipped), 2)
        self.assertFalse(self.products.find_by_name("milk").in_shopping)
        self.assertFalse(self.products.find_by_name("kiwi").in_shopping)

    def test_update_overwrites_in_place(self):
        milk = self.products.find_by_name("milk")
        added = milk.date_added
        result = self.run_import("Milk,produce,TRUE,FALSE,TRUE,TRUE\n", mode="update")
        self.assertEqual(result.updated_count, 1)
        self.assertEqual(result.imported_count, 0)
        self.assertIs(self.products.find_by_name("milk"), milk)
        self.assertEqual(milk.id, "2")
        self.assertEqual(milk.date_added, added)
        self.assertEqual(milk.category, "cat_001")
        self.assertTrue(milk.in_shopping and milk.in_stock)

    def test_semicolon_file_and_missing_name(self):
        text = "name;category;inShopping;inPantry;inStock;inSeason\nFlour;Pantry;yes;no;no;yes\n;dairy;1;1;1;1\n"
        result = import_products_csv(text, self.products, self.kitchen.categories)
        self.assertEqual(result.imported_count, 1)
        self.assertTrue(self.products.find_by_name("flour").in_shopping)
        self.assertEqual(result.skipped[0]["reason"], "Missing product name")

    def test_bad_input_rejected(self):
        with self.assertRaises(ParseError):
            import_products_csv("name,category\nApples,produce\n", self.products, self.kitchen.categories)
        with self.assertRaises(ParseError):
            import_products_csv("   ", self.products, self.kitchen.categories)
        with self.assertRaises(ValueError):
            self.run_import("Apples,produce,0,0,0,1\n", mode="merge")


class TestRecipeCsvImport(unittest.TestCase):

    def setUp(self):
        self.kitchen = make_kitchen()
        self.importer = self.kitchen.recipe_importer
        self.recipes = self.kitchen.recipes

    def test_single_file_groups_rows_per_recipe(self):
        text = (
            "recipeName,description,preparation,ingredientName,quantity,unit,cuisine,mainIngredient,season,persons\n"
            'Pancakes,Fluffy,"1. Mix, well\n2. Bake",milk,500,ml,Dutch,flour,all-year,2\n'
            "Pancakes,,,bread,2,scoop,,,,\n"
            "Pancakes,,,Chicken,1,g,,,,\n"
            "Simple Pasta,,,milk,1,l,,,,\n"
        )
        result = self.importer.import_single_file(text)
        self.assertEqual(result.imported_count, 1)
        pancakes = self.recipes.find_by_name("Pancakes")
        self.assertEqual(pancakes.preparation, "1. Mix, well\n2. Bake")
        self.assertEqual(pancakes.persons, 2)
        self.assertEqual(pancakes.metadata["cuisine"], "Dutch")
        self.assertEqual([(i.product_name, i.quantity, i.unit) for i in pancakes.ingredients],
                         [("milk", 500, "ml"), ("bread", 2, "scoop")])
        self.assertEqual(result.new_units, ["scoop"])
        not_found = [s for s in result.skipped if s["reason"] == "Product 'Chicken' not found"][0]
        self.assertEqual(not_found["similar"], ["chicken breast"])
        self.assertEqual(not_found["row"], 4)
        self.assertIn("Recipe 'Simple Pasta' already exists", [s["reason"] for s in result.skipped])

    def test_single_file_recipe_without_valid_ingredients(self):
        text = "recipeName,description,preparation,ingredientName,quantity,unit\nGhost,,,unicorn,1,g\nMilky,,,milk,-1,g\n"
        result = self.importer.import_single_file(text)
        self.assertEqual(result.imported_count, 0)
        reasons = [s["reason"] for s in result.skipped]
        self.assertEqual(reasons.count("No valid ingredients"), 2)
        self.assertIn("Invalid quantity '-1'", reasons)

    def test_two_files_joined_by_recipe_name(self):
        info = "recipeName,description,persons,cuisine,season\nOmelette,Eggy,1,Spanish,spring\nLonely,,2,,\n"
        ingredients = (
            "recipeName,ingredientName,quantity,unit\n"
            "omelette,milk,100,ml\n"
            "Omelette,bread,1,slice\n"
            "Orphan,milk,1,l\n"
        )
        result = self.importer.import_two_files(info, ingredients)
        self.assertEqual(result.imported_count, 1)
        omelette = self.recipes.find_by_name("Omelette")
        self.assertEqual(len(omelette.ingredients), 2)
        self.assertEqual(omelette.persons, 1)
        self.assertEqual(result.new_cuisines, ["Spanish"])
        self.assertEqual(result.new_seasons, [])
        skipped = {(s.get("recipe"), s["reason"]) for s in result.skipped}
        self.assertIn(("Lonely", "No ingredients"), skipped)
        self.assertIn(("Orphan", "No matching recipe in info file"), skipped)
        self.assertIsNone(self.recipes.find_by_name("Lonely"))

    def test_recipe_only_keeps_free_text(self):
        text = (
            "recipeName,description,preparation,ingredientsText,persons\n"
            'Quick Oats,Breakfast,Stir,"1 cup milk, 2 bananas",1\n'
            "Simple Pasta,,,1 l water,2\n"
            "Empty,,,,2\n"
        )
        result = self.importer.import_recipe_only(text)
        self.assertEqual(result.imported_count, 1)
        oats = self.recipes.find_by_name("Quick Oats")
        self.assertEqual(oats.ingredients_text, "1 cup milk, 2 bananas")
        self.assertEqual(oats.ingredients, [])
        self.assertEqual([s["reason"] for s in result.skipped],
                         ["Recipe 'Simple Pasta' already exists", "Missing ingredients text"])

    def test_detail_columns(self):
        text = (
            "recipeName,ingredientsText,cookTime,prep_time,allergens,Gluten Free,comments\n"
            'Rice Bowl,200 g rice,25 min,,soy,TRUE,"Rinse first\\nServe hot"\n'
            "Plain Toast,1 slice bread,,,,no,\n"
        )
        result = self.importer.import_recipe_only(text)
        self.assertEqual(result.imported_count, 2)
        bowl = self.recipes.find_by_name("Rice Bowl")
        self.assertEqual((bowl.cook_time, bowl.prep_time), ("25 min", "15 min"))
        self.assertEqual(bowl.allergens, "soy")
        self.assertTrue(bowl.gluten_free)
        self.assertEqual(bowl.comments, "Rinse first\nServe hot")
        toast = self.recipes.find_by_name("Plain Toast")
        self.assertFalse(toast.gluten_free)
        self.assertEqual(toast.cook_time, "30 min")

    def test_missing_headers(self):
        with self.assertRaises(ParseError):
            self.importer.import_single_file("recipeName,quantity\nPancakes,1\n")


if __name__ == "__main__":
    unittest.main()
