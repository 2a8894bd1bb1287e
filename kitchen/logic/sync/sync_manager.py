"""Mirror local collections to a remote document store and apply remote changes.

Echo suppression: every outgoing document carries a fresh operation id in
`_op`, and only the latest one per document is kept as pending. The next
snapshot holding that document settles it: when its `_op` matches, it is our
own write and is acknowledged without being applied.
Anything else is applied only when its `_version` is greater than
the local record's version (last writer wins); cross-device conflicts are
not merged.
"""
import logging
import uuid
from typing import Dict, Set, Tuple

from kitchen.domain.Product import Product
from kitchen.domain.Recipe import Recipe
from kitchen.events.Event_Bus import (
    GLOBAL_EVENT_BUS, MEALPLAN_CHANGED, PRODUCTS_CHANGED, RECIPES_CHANGED, SYNC_REMOTE_APPLIED,
)
from kitchen.infra.Remote_Store import RemoteStoreError
from kitchen.utilities.constants import REMOTE_MEAL_PLAN, REMOTE_PRODUCTS, REMOTE_RECIPES

logger = logging.getLogger(__name__)

OP_KEY = "_op"
VERSION_KEY = "_version"


class SyncManager:
    def __init__(self, remote, products, recipes, meal_plan, event_bus=None):
        self.remote = remote
        self.products = products
        self.recipes = recipes
        self.meal_plan = meal_plan
        self._event_bus = event_bus or GLOBAL_EVENT_BUS
        # latest unacknowledged op id per (collection, doc_id)
        self.pending_ops: Dict[Tuple[str, str], str] = {}
        self.week_versions: Dict[str, int] = {}
        self._known_remote: Dict[str, Set[str]] = {REMOTE_PRODUCTS: set(), REMOTE_RECIPES: set(), REMOTE_MEAL_PLAN: set()}
        self._unsubscribers = []
        self.started = False

    # --- lifecycle ------------------------------------------------------------------
    def start(self):
        if self.started:
            return self
        self._event_bus.subscribe(PRODUCTS_CHANGED, self._on_products_changed)
        self._event_bus.subscribe(RECIPES_CHANGED, self._on_recipes_changed)
        self._event_bus.subscribe(MEALPLAN_CHANGED, self._on_mealplan_changed)
        for collection in (REMOTE_PRODUCTS, REMOTE_RECIPES, REMOTE_MEAL_PLAN):
            self._unsubscribers.append(self.remote.subscribe(collection, self.apply_snapshot))
        self.started = True
        logger.info("Remote sync started")
        return self

    def stop(self):
        if not self.started:
            return
        self._event_bus.unsubscribe(PRODUCTS_CHANGED, self._on_products_changed)
        self._event_bus.unsubscribe(RECIPES_CHANGED, self._on_recipes_changed)
        self._event_bus.unsubscribe(MEALPLAN_CHANGED, self._on_mealplan_changed)
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self.started = False

    def pull(self):
        '''Fetch every collection once and apply it (initial load).'''
        for collection in (REMOTE_PRODUCTS, REMOTE_RECIPES, REMOTE_MEAL_PLAN):
            try:
                self.apply_snapshot(collection, self.remote.fetch_all(collection))
            except RemoteStoreError as e:
                logger.warning(f"Could not pull '{collection}': {e}")

    def push_all(self):
        for product in self.products.get_all():
            self._push(REMOTE_PRODUCTS, product.id, product.to_dict(), product.version)
        for recipe in self.recipes.get_all():
            self._push(REMOTE_RECIPES, recipe.id, recipe.to_dict(), recipe.version)
        for week_key in list(self.meal_plan.plans):
            self._push_week(week_key)

    # --- outgoing ----------------------------------------------------------------------
    def _push(self, collection: str, doc_id: str, doc: dict, version: int):
        op_id = uuid.uuid4().hex
        payload = dict(doc)
        payload[OP_KEY] = op_id
        payload[VERSION_KEY] = version
        key = (collection, doc_id)
        # a newer write supersedes whatever op was still waiting for this document
        self.pending_ops[key] = op_id
        try:
            self.remote.put(collection, doc_id, payload)
            self._known_remote[collection].add(doc_id)
        except RemoteStoreError as e:
            if self.pending_ops.get(key) == op_id:
                del self.pending_ops[key]
            logger.error(f"Remote write {collection}/{doc_id} failed, keeping local state: {e}")

    def _delete(self, collection: str, doc_id: str):
        self.pending_ops.pop((collection, doc_id), None)
        try:
            self.remote.delete(collection, doc_id)
            self._known_remote[collection].discard(doc_id)
        except RemoteStoreError as e:
            logger.error(f"Remote delete {collection}/{doc_id} failed: {e}")

    def _push_week(self, week_key: str):
        week = self.meal_plan.plans.get(week_key)
        if not week:
            self.week_versions.pop(week_key, None)
            self._delete(REMOTE_MEAL_PLAN, week_key)
            return
        version = self.week_versions.get(week_key, 0) + 1
        self.week_versions[week_key] = version
        doc = {"weekKey": week_key, "days": self.meal_plan.week_to_dict(week)}
        self._push(REMOTE_MEAL_PLAN, week_key, doc, version)

    def _on_products_changed(self, _event, payload):
        for product_id in (payload or {}).get("product_ids", []):
            product = self.products.get(product_id)
            if product is None:
                self._delete(REMOTE_PRODUCTS, product_id)
            else:
                self._push(REMOTE_PRODUCTS, product.id, product.to_dict(), product.version)

    def _on_recipes_changed(self, _event, payload):
        recipe_id = (payload or {}).get("recipe_id")
        if not recipe_id:
            for recipe in self.recipes.get_all():
                self._push(REMOTE_RECIPES, recipe.id, recipe.to_dict(), recipe.version)
            return
        recipe = self.recipes.get(recipe_id)
        if recipe is None:
            self._delete(REMOTE_RECIPES, recipe_id)
        else:
            self._push(REMOTE_RECIPES, recipe.id, recipe.to_dict(), recipe.version)

    def _on_mealplan_changed(self, _event, payload):
        week_key = (payload or {}).get("week_key")
        if week_key:
            self._push_week(week_key)

    # --- incoming -----------------------------------------------------------------------
    def _local_version(self, collection: str, doc_id: str):
        if collection == REMOTE_PRODUCTS:
            record = self.products.get(doc_id)
            return record.version if record else None
        if collection == REMOTE_RECIPES:
            record = self.recipes.get(doc_id)
            return record.version if record else None
        if doc_id in self.meal_plan.plans:
            return self.week_versions.get(doc_id, 0)
        return None

    def _apply_doc(self, collection: str, doc_id: str, doc: dict, version: int):
        if collection == REMOTE_PRODUCTS:
            product = Product.from_dict({**doc, "id": doc_id})
            product.version = version
            self.products.put_record(product, notify=False)
        elif collection == REMOTE_RECIPES:
            recipe = Recipe.from_dict({**doc, "id": doc_id})
            recipe.version = version
            self.recipes.put_record(recipe, notify=False)
        else:
            self.meal_plan.put_week(doc_id, doc.get("days") or {}, notify=False)
            self.week_versions[doc_id] = version

    def _drop_doc(self, collection: str, doc_id: str):
        if collection == REMOTE_PRODUCTS:
            return self.products.drop_record(doc_id, notify=False)
        if collection == REMOTE_RECIPES:
            return self.recipes.drop_record(doc_id, notify=False)
        self.week_versions.pop(doc_id, None)
        return self.meal_plan.drop_week(doc_id, notify=False)

    def apply_snapshot(self, collection: str, snapshot: Dict[str, dict]) -> Dict[str, list]:
        """Apply a full remote collection; returns the ids applied, removed and skipped."""
        applied, removed, skipped = [], [], []
        snapshot = snapshot or {}
        for doc_id, doc in snapshot.items():
            if not isinstance(doc, dict):
                continue
            # whatever the remote now holds answers our latest write to this document
            pending = self.pending_ops.pop((collection, doc_id), None)
            if pending and doc.get(OP_KEY) == pending:
                skipped.append(doc_id)
                continue
            try:
                version = int(doc.get(VERSION_KEY) or 0)
            except (TypeError, ValueError):
                version = 0
            local_version = self._local_version(collection, doc_id)
            if local_version is not None and version <= local_version:
                skipped.append(doc_id)
                continue
            clean = {k: v for k, v in doc.items() if k not in (OP_KEY, VERSION_KEY)}
            self._apply_doc(collection, doc_id, clean, version)
            applied.append(doc_id)

        known = self._known_remote.setdefault(collection, set())
        for doc_id in sorted(known - set(snapshot)):
            if self._drop_doc(collection, doc_id):
                removed.append(doc_id)
        self._known_remote[collection] = set(snapshot)

        if applied or removed:
            if collection == REMOTE_RECIPES or collection == REMOTE_PRODUCTS:
                self.products.refresh_recipe_counts(self.recipes.get_all())
            self._event_bus.publish(SYNC_REMOTE_APPLIED, {
                "collection": collection, "applied": applied, "removed": removed,
            })
            logger.info(f"Applied remote '{collection}': {len(applied)} updated, {len(removed)} removed")
        return {"applied": applied, "removed": removed, "skipped": skipped}
