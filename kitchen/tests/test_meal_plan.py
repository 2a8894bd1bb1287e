import unittest
from datetime import date, datetime

from kitchen.domain.errors import InvalidReference, InvalidValue, NotFound
from kitchen.domain.Plan import RecipeMeal, SimpleMeal
from kitchen.events.Event_Bus import MEALPLAN_CHANGED
from kitchen.infra.Local_Storage import InMemoryStorage
from kitchen.tests.support import EventRecorder, make_kitchen
from kitchen.utilities.constants import MEAL_PLANS_KEY


class TestCalendar(unittest.TestCase):

    def setUp(self):
        self.plan = make_kitchen().meal_plan

    def test_week_starts_on_saturday(self):
        self.assertEqual(self.plan.get_week_start(datetime(2025, 1, 15, 9, 30)), date(2025, 1, 11))
        self.assertEqual(self.plan.get_week_start(date(2025, 1, 11)), date(2025, 1, 11))
        self.assertEqual(self.plan.get_week_start(date(2025, 1, 17)), date(2025, 1, 11))
        self.assertEqual(self.plan.current_week_key, "2025-01-11")

    def test_today_and_meal_indexes(self):
        self.assertEqual(self.plan.today_index(), 4)
        self.assertEqual(self.plan.current_meal_index(), 0)
        self.assertEqual(self.plan.current_meal_index(datetime(2025, 1, 15, 11, 0)), 1)
        self.assertEqual(self.plan.current_meal_index(datetime(2025, 1, 15, 17, 0)), 2)

    def test_navigation(self):
        self.assertEqual(self.plan.navigate_week(1), "2025-01-18")
        self.assertEqual(self.plan.navigate_week(-2), "2025-01-04")
        self.assertEqual(self.plan.go_to_today(), "2025-01-11")
        self.assertEqual(self.plan.day_label(0), "Saturday 11/1")


class TestMealSlots(unittest.TestCase):

    def setUp(self):
        self.kitchen = make_kitchen()
        self.plan = self.kitchen.meal_plan
        self.pasta = self.kitchen.recipes.find_by_name("Simple Pasta")
        self.milk = self.kitchen.products.find_by_name("milk")
        self.bread = self.kitchen.products.find_by_name("bread")

    def test_set_and_replace_slot(self):
        self.plan.set_meal(0, "dinner", {"type": "recipe", "id": self.pasta.id})
        self.plan.set_meal(0, "dinner", {"type": "simple", "name": "", "products": [self.milk.id, self.bread.id]})
        meal = self.plan.get_meal(0, "dinner")
        self.assertIsInstance(meal, SimpleMeal)
        self.assertEqual(meal.name, "milk, bread")

    def test_invalid_slots_and_references(self):
        with self.assertRaises(InvalidValue):
            self.plan.set_meal(7, "lunch", {"type": "recipe", "id": self.pasta.id})
        with self.assertRaises(InvalidValue):
            self.plan.set_meal(1, "brunch", {"type": "recipe", "id": self.pasta.id})
        with self.assertRaises(InvalidReference):
            self.plan.set_meal(1, "lunch", {"type": "recipe", "id": "99"})
        with self.assertRaises(InvalidReference):
            self.plan.set_meal(1, "lunch", {"type": "simple", "name": "x", "products": ["99"]})
        with self.assertRaises(InvalidValue):
            self.plan.set_meal(1, "lunch", {"type": "simple", "name": "x", "products": []})
        self.assertEqual(self.plan.plans, {})

    def test_removing_last_slot_prunes_containers(self):
        self.plan.set_meal(2, "lunch", {"type": "recipe", "id": self.pasta.id})
        self.plan.set_meal(2, "dinner", {"type": "recipe", "id": self.pasta.id})
        self.plan.remove_meal(2, "lunch")
        self.assertEqual(list(self.plan.get_week()[2]), ["dinner"])
        self.plan.remove_meal(2, "dinner")
        self.assertNotIn("2025-01-11", self.plan.plans)
        with self.assertRaises(NotFound):
            self.plan.remove_meal(2, "dinner")
        self.assertEqual(self.kitchen.storage.load_collection(MEAL_PLANS_KEY), {})

    def test_deleting_recipe_clears_its_slots(self):
        recorder = EventRecorder(self.kitchen.event_bus, MEALPLAN_CHANGED)
        self.plan.set_meal(0, "lunch", {"type": "recipe", "id": self.pasta.id})
        self.plan.set_meal(3, "dinner", {"type": "recipe", "id": self.pasta.id}, week_key="2025-01-18")
        self.plan.set_meal(3, "lunch", {"type": "simple", "name": "Toast", "products": [self.bread.id]})
        self.kitchen.recipes.delete(self.pasta.id)
        self.assertEqual(list(self.plan.plans), ["2025-01-11"])
        self.assertIsInstance(self.plan.get_meal(3, "lunch"), SimpleMeal)
        self.assertIsNone(self.plan.get_meal(0, "lunch"))
        self.assertIn({"action": "recipe_removed", "week_key": "2025-01-18"}, [p for _, p in recorder.events])

    def test_unknown_recipe_display(self):
        self.assertEqual(self.plan.display_name(RecipeMeal("404")), "Unknown Recipe")
        self.assertEqual(self.plan.display_name({"type": "recipe", "id": self.pasta.id}), "Simple Pasta")

    def test_week_view(self):
        self.plan.set_meal(1, "breakfast", {"type": "recipe", "id": self.pasta.id})
        view = self.plan.week_view()
        self.assertEqual(len(view), 7)
        self.assertEqual(view[1]["day"], "Sunday")
        self.assertEqual(view[1]["meals"]["breakfast"]["name"], "Simple Pasta")
        self.assertIsNone(view[1]["meals"]["lunch"])

    def test_legacy_numeric_slots_load_as_recipes(self):
        storage = InMemoryStorage()
        storage.save_collection(MEAL_PLANS_KEY, {"2025-01-11": {"0": {"lunch": 1, "snack": 2}, "9": {"dinner": 1}}})
        plan = make_kitchen(storage=storage).meal_plan
        self.assertEqual(list(plan.get_week()), [0])
        meal = plan.get_meal(0, "lunch")
        self.assertIsInstance(meal, RecipeMeal)
        self.assertEqual(meal.recipe_id, "1")


class TestIngredientRanges(unittest.TestCase):

    def setUp(self):
        self.kitchen = make_kitchen()
        self.plan = self.kitchen.meal_plan
        products = self.kitchen.products
        self.pasta = self.kitchen.recipes.find_by_name("Simple Pasta")
        self.salad = self.kitchen.recipes.find_by_name("Chicken Salad")
        self.milk = products.find_by_name("milk")
        # Wednesday is day 4; it is breakfast time
        self.plan.set_meal(1, "dinner", {"type": "recipe", "id": self.salad.id})
        self.plan.set_meal(4, "breakfast", {"type": "simple", "name": "Milk", "products": [self.milk.id]})
        self.plan.set_meal(4, "lunch", {"type": "recipe", "id": self.pasta.id})
        self.plan.set_meal(5, "dinner", {"type": "recipe", "id": self.pasta.id})

    def ids(self, collected):
        return [i["productId"] for i in collected["ingredients"]]

    def test_all_range_dedupes_products(self):
        collected = self.plan.collect_ingredients_for_range("all")
        self.assertEqual(len(collected["meals"]), 4)
        olive_oil = self.kitchen.products.find_by_name("olive oil").id
        self.assertEqual(self.ids(collected).count(olive_oil), 1)
        self.assertEqual(len(collected["ingredients"]), 3)

    def test_future_excludes_today(self):
        collected = self.plan.collect_ingredients_for_range("future")
        self.assertEqual([(m["dayIndex"], m["mealType"]) for m in collected["meals"]], [(5, "dinner")])

    def test_today_future_includes_later_meals_today(self):
        collected = self.plan.collect_ingredients_for_range("todayFuture")
        slots = [(m["dayIndex"], m["mealType"]) for m in collected["meals"]]
        self.assertEqual(slots, [(4, "lunch"), (5, "dinner")])

    def test_simple_meal_uses_portion_unit(self):
        collected = self.plan.collect_ingredients_for_range("all")
        milk_line = [i for i in collected["ingredients"] if i["productId"] == self.milk.id][0]
        self.assertEqual(milk_line, {"productId": self.milk.id, "quantity": 1, "unit": "portion"})

    def test_viewed_weeks_relative_to_today(self):
        self.plan.navigate_week(1)
        self.plan.set_meal(0, "breakfast", {"type": "recipe", "id": self.salad.id})
        self.assertEqual(len(self.plan.collect_ingredients_for_range("future")["meals"]), 1)
        self.plan.navigate_week(-2)
        self.plan.set_meal(0, "breakfast", {"type": "recipe", "id": self.salad.id})
        self.assertEqual(self.plan.collect_ingredients_for_range("todayFuture")["meals"], [])
        self.assertEqual(len(self.plan.collect_ingredients_for_range("all")["meals"]), 1)

    def test_unknown_range(self):
        with self.assertRaises(InvalidValue):
            self.plan.collect_ingredients_for_range("yesterday")

    def test_add_range_to_shopping(self):
        result = self.plan.add_range_to_shopping("future")
        self.assertEqual(result, {"added": 1, "missing": 0, "meals": 1})
        self.assertTrue(self.kitchen.products.find_by_name("olive oil").in_shopping)
        self.assertFalse(self.milk.in_shopping)


if __name__ == "__main__":
    unittest.main()
