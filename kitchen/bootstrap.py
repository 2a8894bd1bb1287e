"""Wires the stores together in dependency order and runs the startup repairs."""
import logging
from datetime import datetime
from typing import Callable, Optional

from kitchen.events.Event_Bus import EventBus, GLOBAL_EVENT_BUS
from kitchen.infra.Local_Storage import JsonFileStorage, KeyValueStorage
from kitchen.infra.paths import STORAGE_FILE
from kitchen.logic.catalog.categories import CategoryStore
from kitchen.logic.catalog.products import ProductStore
from kitchen.logic.importing.recipe_import import RecipeCsvImporter
from kitchen.logic.planning.meal_plan import MealPlanService
from kitchen.logic.recipes.store import RecipeStore
from kitchen.logic.sync.sync_manager import SyncManager
from kitchen.utilities import config

logger = logging.getLogger(__name__)


class Kitchen:
    """Holds one instance of every store; nothing reaches for a global manager."""

    def __init__(self, storage: KeyValueStorage, event_bus: EventBus, clock: Callable[[], datetime] = datetime.now,
                 remote=None):
        self.storage = storage
        self.event_bus = event_bus
        storage.set_event_bus(event_bus)
        self.categories = CategoryStore(storage, event_bus)
        self.products = ProductStore(storage, self.categories, event_bus)
        self.recipes = RecipeStore(storage, self.products, event_bus)
        self.meal_plan = MealPlanService(storage, self.products, self.recipes, event_bus, clock=clock)
        self.recipe_importer = RecipeCsvImporter(self.recipes, self.products)
        self.sync: Optional[SyncManager] = None
        if remote is not None:
            self.sync = SyncManager(remote, self.products, self.recipes, self.meal_plan, event_bus)

    def startup(self) -> dict:
        """Migrate legacy category ids, fold legacy lists, repair orphans, recount recipe usage."""
        mapping = self.categories.migrate_legacy_ids()
        folded = self.products.fold_legacy_lists()
        orphans = self.products.validate_product_categories()
        self.products.refresh_recipe_counts(self.recipes.get_all())
        if self.sync is not None:
            self.sync.pull()
            self.sync.start()
        summary = {"migratedCategories": len(mapping), "legacyItems": folded, "orphansFixed": orphans}
        logger.info(f"Kitchen ready: {summary}")
        return summary


def build_kitchen(storage: Optional[KeyValueStorage] = None, event_bus: Optional[EventBus] = None,
                  clock: Callable[[], datetime] = datetime.now, remote=None) -> Kitchen:
    if storage is None:
        storage = JsonFileStorage(STORAGE_FILE)
    if remote is None and config.REMOTE_STORE_URL:
        from kitchen.infra.Remote_Store import HttpRemoteStore
        remote = HttpRemoteStore()
    kitchen = Kitchen(storage, event_bus or GLOBAL_EVENT_BUS, clock=clock, remote=remote)
    kitchen.startup()
    return kitchen
