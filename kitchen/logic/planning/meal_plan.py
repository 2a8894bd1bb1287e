"""Weekly meal plan: mealPlans[weekKey][dayIndex][mealType] = assignment.

The week key is the ISO date of the day the week starts on (Saturday unless
configured otherwise); day 0 is that first day. Empty day and week
containers are removed as soon as their last slot goes.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional

from kitchen.domain.Plan import MealAssignment, RecipeMeal, SimpleMeal, assignment_from_value
from kitchen.domain.Product import normalize_id
from kitchen.domain.errors import InvalidReference, InvalidValue, NotFound
from kitchen.events.Event_Bus import GLOBAL_EVENT_BUS, MEALPLAN_CHANGED
from kitchen.utilities import config
from kitchen.utilities.constants import (
    DAY_NAMES, ISO_DATE_FORMAT, MEAL_PLANS_KEY, MEAL_TYPES, SIMPLE_MEAL_UNIT, TIME_RANGES, UNKNOWN_RECIPE,
)

logger = logging.getLogger(__name__)

WeekPlan = Dict[int, Dict[str, MealAssignment]]


class MealPlanService:
    def __init__(self, storage, products, recipes, event_bus=None, clock: Callable[[], datetime] = datetime.now,
                 week_start_weekday: int = config.WEEK_START_WEEKDAY,
                 lunch_start_hour: int = config.LUNCH_START_HOUR,
                 dinner_start_hour: int = config.DINNER_START_HOUR):
        self._storage = storage
        self._products = products
        self._recipes = recipes
        self._event_bus = event_bus or GLOBAL_EVENT_BUS
        self._clock = clock
        self.week_start_weekday = week_start_weekday
        self.lunch_start_hour = lunch_start_hour
        self.dinner_start_hour = dinner_start_hour
        self.plans: Dict[str, WeekPlan] = self._load()
        self.current_week_start: date = self.get_week_start(self._clock())
        recipes.register_dependent(self)

    # --- persistence ----------------------------------------------------------
    def _load(self) -> Dict[str, WeekPlan]:
        saved = self._storage.load_collection(MEAL_PLANS_KEY, default={})
        if not isinstance(saved, dict):
            return {}
        plans: Dict[str, WeekPlan] = {}
        for week_key, days in saved.items():
            week = self._parse_week(days)
            if week:
                plans[week_key] = week
        return plans

    @staticmethod
    def _parse_week(days) -> WeekPlan:
        week: WeekPlan = {}
        if not isinstance(days, dict):
            return week
        for day_key, meals in days.items():
            try:
                day_index = int(day_key)
            except (TypeError, ValueError):
                continue
            if not 0 <= day_index <= 6 or not isinstance(meals, dict):
                continue
            slots = {}
            for meal_type, value in meals.items():
                assignment = assignment_from_value(value)
                if meal_type in MEAL_TYPES and assignment is not None:
                    slots[meal_type] = assignment
            if slots:
                week[day_index] = slots
        return week

    @staticmethod
    def week_to_dict(week: WeekPlan) -> dict:
        return {str(day): {meal: a.to_dict() for meal, a in slots.items()} for day, slots in sorted(week.items())}

    def to_dict(self) -> dict:
        return {key: self.week_to_dict(week) for key, week in sorted(self.plans.items())}

    def save(self) -> bool:
        return self._storage.save_collection(MEAL_PLANS_KEY, self.to_dict())

    def _changed(self, action: str, week_key: str):
        self.save()
        self._event_bus.publish(MEALPLAN_CHANGED, {"action": action, "week_key": week_key})

    # --- calendar -------------------------------------------------------------------
    def get_week_start(self, when) -> date:
        day = when.date() if isinstance(when, datetime) else when
        return day - timedelta(days=(day.weekday() - self.week_start_weekday) % 7)

    @staticmethod
    def get_week_key(week_start: date) -> str:
        return week_start.strftime(ISO_DATE_FORMAT)

    @property
    def current_week_key(self) -> str:
        return self.get_week_key(self.current_week_start)

    def navigate_week(self, offset: int) -> str:
        self.current_week_start += timedelta(weeks=offset)
        return self.current_week_key

    def go_to_today(self) -> str:
        self.current_week_start = self.get_week_start(self._clock())
        return self.current_week_key

    def day_label(self, day_index: int) -> str:
        day = self.current_week_start + timedelta(days=day_index)
        return f"{day.strftime('%A')} {day.day}/{day.month}"

    def today_index(self, now: Optional[datetime] = None) -> int:
        now = now or self._clock()
        return (now.weekday() - self.week_start_weekday) % 7

    def current_meal_index(self, now: Optional[datetime] = None) -> int:
        hour = (now or self._clock()).hour
        if hour < self.lunch_start_hour:
            return 0
        if hour < self.dinner_start_hour:
            return 1
        return 2

    # --- slots --------------------------------------------------------------------------
    @staticmethod
    def _check_slot(day_index: int, meal_type: str):
        if isinstance(day_index, bool) or not isinstance(day_index, int) or not 0 <= day_index <= 6:
            raise InvalidValue(f"Day index must be 0-6, got {day_index!r}", day_index=day_index)
        if meal_type not in MEAL_TYPES:
            raise InvalidValue(f"Unknown meal type '{meal_type}'", meal_type=meal_type)

    def _check_assignment(self, value) -> MealAssignment:
        assignment = assignment_from_value(value)
        if assignment is None:
            raise InvalidValue("Meal must be a recipe reference or a simple meal")
        if isinstance(assignment, RecipeMeal):
            if self._recipes.get(assignment.recipe_id) is None:
                raise InvalidReference(f"Recipe '{assignment.recipe_id}' not found", recipe_id=assignment.recipe_id)
        else:
            if not assignment.products:
                raise InvalidValue("A simple meal needs at least one product")
            for product_id in assignment.products:
                if self._products.get(product_id) is None:
                    raise InvalidReference(f"Product '{product_id}' not found", product_id=product_id)
            if not assignment.name.strip():
                assignment.name = ", ".join(self._products.get(p).name for p in assignment.products)
        return assignment

    def get_week(self, week_key: Optional[str] = None) -> WeekPlan:
        return self.plans.get(week_key or self.current_week_key, {})

    def get_meal(self, day_index: int, meal_type: str, week_key: Optional[str] = None) -> Optional[MealAssignment]:
        return self.get_week(week_key).get(day_index, {}).get(meal_type)

    def set_meal(self, day_index: int, meal_type: str, assignment, week_key: Optional[str] = None) -> MealAssignment:
        """Fill a slot, replacing whatever was there."""
        self._check_slot(day_index, meal_type)
        meal = self._check_assignment(assignment)
        key = week_key or self.current_week_key
        self.plans.setdefault(key, {}).setdefault(day_index, {})[meal_type] = meal
        self._changed("set", key)
        logger.info(f"Planned {meal!r} for {DAY_NAMES[day_index]} {meal_type} ({key})")
        return meal

    def remove_meal(self, day_index: int, meal_type: str, week_key: Optional[str] = None) -> MealAssignment:
        self._check_slot(day_index, meal_type)
        key = week_key or self.current_week_key
        week = self.plans.get(key, {})
        slots = week.get(day_index, {})
        if meal_type not in slots:
            raise NotFound(f"No {meal_type} planned for day {day_index}", week_key=key)
        removed = slots.pop(meal_type)
        self._prune(key, day_index)
        self._changed("removed", key)
        return removed

    def _prune(self, week_key: str, day_index: int):
        week = self.plans.get(week_key)
        if week is None:
            return
        if not week.get(day_index):
            week.pop(day_index, None)
        if not week:
            del self.plans[week_key]

    def clear_week(self, week_key: Optional[str] = None) -> bool:
        key = week_key or self.current_week_key
        if key not in self.plans:
            return False
        del self.plans[key]
        self._changed("cleared", key)
        return True

    def remove_recipe_from_all_plans(self, recipe_id) -> int:
        target = normalize_id(recipe_id)
        removed = 0
        touched = []
        for week_key in list(self.plans):
            for day_index in list(self.plans[week_key]):
                slots = self.plans[week_key][day_index]
                for meal_type in [m for m, a in slots.items() if isinstance(a, RecipeMeal) and a.recipe_id == target]:
                    del slots[meal_type]
                    removed += 1
                    touched.append(week_key)
                self._prune(week_key, day_index)
        if removed:
            self.save()
            for week_key in dict.fromkeys(touched):
                self._event_bus.publish(MEALPLAN_CHANGED, {"action": "recipe_removed", "week_key": week_key})
            logger.info(f"Removed recipe {target} from {removed} meal slots")
        return removed

    # --- resolution -----------------------------------------------------------------------
    def resolve_assignment(self, assignment) -> Optional[dict]:
        """{name, ingredients} for a slot value; None when the recipe no longer exists."""
        meal = assignment_from_value(assignment)
        if meal is None:
            return None
        if isinstance(meal, SimpleMeal):
            return {
                "type": SimpleMeal.type,
                "name": meal.name,
                "ingredients": [{"productId": p, "quantity": 1, "unit": SIMPLE_MEAL_UNIT} for p in meal.products],
            }
        recipe = self._recipes.get(meal.recipe_id)
        if recipe is None:
            return None
        return {
            "type": RecipeMeal.type,
            "name": recipe.name,
            "recipeId": recipe.id,
            "ingredients": [{"productId": i.product_id, "quantity": i.quantity, "unit": i.unit}
                            for i in recipe.ingredients],
        }

    def display_name(self, assignment) -> str:
        resolved = self.resolve_assignment(assignment)
        return resolved["name"] if resolved else UNKNOWN_RECIPE

    def week_view(self, week_key: Optional[str] = None) -> List[dict]:
        week = self.get_week(week_key)
        view = []
        for day_index, day_name in enumerate(DAY_NAMES):
            slots = week.get(day_index, {})
            view.append({
                "dayIndex": day_index,
                "day": day_name,
                "meals": {m: ({**slots[m].to_dict(), "name": self.display_name(slots[m])} if m in slots else None)
                          for m in MEAL_TYPES},
            })
        return view

    # --- ranges ----------------------------------------------------------------------------
    def _slot_included(self, time_range: str, day_index: int, meal_index: int,
                       today: int, current_meal: int) -> bool:
        if time_range == "all":
            return True
        if time_range == "future":
            return day_index > today
        return day_index > today or (day_index == today and meal_index > current_meal)

    def collect_ingredients_for_range(self, time_range: str = "all") -> dict:
        """Ingredients of the current week's meals in `time_range`, one entry per product."""
        if time_range not in TIME_RANGES:
            raise InvalidValue(f"Unknown time range '{time_range}'", time_range=time_range)
        now = self._clock()
        this_week = self.get_week_start(now)
        if self.current_week_start > this_week:
            today, current_meal = -1, -1
        elif self.current_week_start < this_week:
            today, current_meal = 7, len(MEAL_TYPES)
        else:
            today, current_meal = self.today_index(now), self.current_meal_index(now)

        week = self.get_week()
        ingredients: Dict[str, dict] = {}
        meals = []
        for day_index in range(7):
            slots = week.get(day_index, {})
            for meal_index, meal_type in enumerate(MEAL_TYPES):
                if meal_type not in slots:
                    continue
                if not self._slot_included(time_range, day_index, meal_index, today, current_meal):
                    continue
                resolved = self.resolve_assignment(slots[meal_type])
                meals.append({
                    "dayIndex": day_index,
                    "day": DAY_NAMES[day_index],
                    "mealType": meal_type,
                    "name": resolved["name"] if resolved else UNKNOWN_RECIPE,
                })
                for ingredient in (resolved or {}).get("ingredients", []):
                    ingredients.setdefault(ingredient["productId"], ingredient)
        return {"ingredients": list(ingredients.values()), "meals": meals}

    def add_range_to_shopping(self, time_range: str = "all") -> dict:
        collected = self.collect_ingredients_for_range(time_range)
        added = 0
        missing = 0
        for ingredient in collected["ingredients"]:
            product = self._products.get(ingredient["productId"])
            if product is None:
                missing += 1
                continue
            if not product.in_shopping:
                added += 1
            self._products.add_to_shopping(product.id)
        logger.info(f"Added {added} products to shopping from {len(collected['meals'])} meals ({time_range})")
        return {"added": added, "missing": missing, "meals": len(collected["meals"])}

    # --- remote snapshots ------------------------------------------------------------------
    def put_week(self, week_key: str, days, notify: bool = True):
        week = self._parse_week(days)
        if week:
            self.plans[week_key] = week
        else:
            self.plans.pop(week_key, None)
        if notify:
            self._changed("put", week_key)
        else:
            self.save()

    def drop_week(self, week_key: str, notify: bool = True) -> bool:
        if week_key not in self.plans:
            return False
        del self.plans[week_key]
        if notify:
            self._changed("cleared", week_key)
        else:
            self.save()
        return True
