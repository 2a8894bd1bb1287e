import unittest

from kitchen.domain.errors import DuplicateName, EmptyName, NotFound, ProtectedDefault
from kitchen.events.Event_Bus import CATEGORIES_CHANGED
from kitchen.infra.Local_Storage import InMemoryStorage
from kitchen.tests.support import EventRecorder, make_kitchen
from kitchen.utilities.constants import CATEGORIES_KEY, OTHER_CATEGORY_ID, PRODUCTS_KEY


class TestCategoryStore(unittest.TestCase):

    def setUp(self):
        self.kitchen = make_kitchen()
        self.categories = self.kitchen.categories

    def test_seeds_seven_defaults(self):
        ids = [c.id for c in self.categories.get_all()]
        self.assertEqual(ids, [f"cat_00{i}" for i in range(1, 8)])
        self.assertEqual(self.categories.get(OTHER_CATEGORY_ID).name, "other")
        self.assertTrue(all(c.is_default for c in self.categories.get_all()))

    def test_add_assigns_next_id_and_order(self):
        snacks = self.categories.add("Snacks", "🍿")
        self.assertEqual(snacks.id, "cat_008")
        self.assertEqual(snacks.order, 7)
        self.assertFalse(snacks.is_default)

    def test_add_rejects_empty_and_duplicate(self):
        with self.assertRaises(EmptyName):
            self.categories.add("   ")
        with self.assertRaises(DuplicateName):
            self.categories.add("PRODUCE")
        self.assertEqual(self.categories.count(), 7)

    def test_defaults_are_protected(self):
        with self.assertRaises(ProtectedDefault):
            self.categories.edit("cat_001", name="Veg")
        with self.assertRaises(ProtectedDefault):
            self.categories.delete(OTHER_CATEGORY_ID)

    def test_edit_custom_category(self):
        snacks = self.categories.add("Snacks", "🍿")
        edited = self.categories.edit(snacks.id, name="Treats", emoji="🍫")
        self.assertEqual(edited.display_name, "Treats")
        self.assertEqual(edited.emoji, "🍫")

    def test_delete_reassigns_products_to_other(self):
        snacks = self.categories.add("Snacks", "🍿")
        chips = self.kitchen.products.add("Chips", snacks.id)
        nuts = self.kitchen.products.add("Nuts", snacks.id)
        self.categories.delete(snacks.id)
        self.assertIsNone(self.categories.get(snacks.id))
        self.assertEqual(self.kitchen.products.get(chips.id).category, OTHER_CATEGORY_ID)
        self.assertEqual(self.kitchen.products.get(nuts.id).category, OTHER_CATEGORY_ID)
        self.assertNotIn("snacks", [c.name for c in self.categories.get_all()])

    def test_reorder_and_move(self):
        ordered = self.categories.reorder(["cat_007", "cat_001"])
        self.assertEqual([c.id for c in ordered][:3], ["cat_007", "cat_001", "cat_002"])
        self.assertEqual([c.order for c in ordered], list(range(7)))

        moved = self.categories.move(0, 6)
        self.assertEqual(moved[-1].id, "cat_007")
        with self.assertRaises(NotFound):
            self.categories.move(0, 42)

    def test_changes_are_published(self):
        recorder = EventRecorder(self.kitchen.event_bus, CATEGORIES_CHANGED)
        self.categories.add("Snacks")
        self.assertEqual(recorder.names(), [CATEGORIES_CHANGED])

    def test_find_by_name_uses_display_name(self):
        self.assertEqual(self.categories.find_by_name("Dairy").id, "cat_002")
        self.assertIsNone(self.categories.find_by_name("nope"))


def legacy_layout():
    '''Name-keyed categories where "other" sits in eighth place.'''
    names = ["produce", "dairy", "meat", "pantry", "frozen", "bakery", "snacks", "other"]
    storage = InMemoryStorage()
    storage.save_collection(CATEGORIES_KEY, [{"id": n, "name": n, "order": i} for i, n in enumerate(names)])
    storage.save_collection(PRODUCTS_KEY, [
        {"id": "1", "name": "chips", "category": "snacks"},
        {"id": "2", "name": "mystery", "category": "bogus"},
    ])
    return storage


class TestOtherCategoryLookup(unittest.TestCase):

    def test_orphans_go_to_migrated_other(self):
        kitchen = make_kitchen(storage=legacy_layout())
        self.assertEqual(kitchen.categories.get("cat_007").name, "snacks")
        self.assertEqual(kitchen.categories.fallback_id(), "cat_008")
        self.assertEqual(kitchen.products.get("1").category, "cat_007")
        self.assertEqual(kitchen.products.get("2").category, "cat_008")

    def test_delete_moves_products_to_migrated_other(self):
        kitchen = make_kitchen(storage=legacy_layout())
        kitchen.categories.delete("cat_007")
        self.assertEqual(kitchen.products.get("1").category, "cat_008")
        self.assertEqual(kitchen.products.find_orphaned(), [])
        self.assertIsNone(kitchen.categories.get("cat_007"))

    def test_missing_other_is_restored(self):
        storage = InMemoryStorage()
        storage.save_collection(CATEGORIES_KEY, [{"id": "cat_001", "name": "produce", "order": 0}])
        storage.save_collection(PRODUCTS_KEY, [{"id": "1", "name": "x", "category": "cat_404"}])
        kitchen = make_kitchen(storage=storage)
        other = kitchen.categories.get("cat_007")
        self.assertEqual(other.name, "other")
        self.assertTrue(other.is_default)
        self.assertEqual(kitchen.products.get("1").category, "cat_007")
        self.assertEqual(kitchen.products.find_orphaned(), [])

    def test_restored_other_skips_taken_id(self):
        storage = InMemoryStorage()
        storage.save_collection(CATEGORIES_KEY, [{"id": "cat_007", "name": "snacks", "order": 0}])
        kitchen = make_kitchen(storage=storage)
        product = kitchen.products.add("Pretzels", "cat_404")
        self.assertEqual(product.category, "cat_008")
        self.assertEqual(kitchen.categories.get("cat_008").name, "other")

    def test_deleting_legacy_other_restores_a_new_one(self):
        kitchen = make_kitchen(storage=legacy_layout())
        kitchen.products.fix_orphan("2", "cat_008")
        kitchen.categories.delete("cat_008")
        other_id = kitchen.categories.fallback_id()
        self.assertNotEqual(other_id, "cat_008")
        self.assertEqual(kitchen.products.get("2").category, other_id)


if __name__ == "__main__":
    unittest.main()
