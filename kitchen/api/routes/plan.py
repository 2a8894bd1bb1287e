from typing import Optional

from fastapi import APIRouter, Depends

from kitchen.api.deps import get_kitchen
from kitchen.utilities.validators import MealAssignmentInput

router = APIRouter(prefix="/api/plan", tags=["meal plan"])


def _week(kitchen, week_key: Optional[str] = None) -> dict:
    plan = kitchen.meal_plan
    key = week_key or plan.current_week_key
    return {"weekKey": key, "days": plan.week_view(key)}


@router.get("/week")
def current_week(week_key: Optional[str] = None, kitchen=Depends(get_kitchen)):
    return _week(kitchen, week_key)


@router.post("/week/navigate")
def navigate_week(offset: int = 1, kitchen=Depends(get_kitchen)):
    kitchen.meal_plan.navigate_week(offset)
    return _week(kitchen)


@router.post("/week/today")
def go_to_today(kitchen=Depends(get_kitchen)):
    kitchen.meal_plan.go_to_today()
    return _week(kitchen)


@router.delete("/week")
def clear_week(week_key: Optional[str] = None, kitchen=Depends(get_kitchen)):
    return {"cleared": kitchen.meal_plan.clear_week(week_key)}


@router.put("/slot")
def set_meal(payload: MealAssignmentInput, kitchen=Depends(get_kitchen)):
    meal = kitchen.meal_plan.set_meal(payload.day_index, payload.meal_type, payload.assignment(), payload.week_key)
    return {**meal.to_dict(), "name": kitchen.meal_plan.display_name(meal)}


@router.delete("/slot/{day_index}/{meal_type}")
def remove_meal(day_index: int, meal_type: str, week_key: Optional[str] = None, kitchen=Depends(get_kitchen)):
    return {"removed": kitchen.meal_plan.remove_meal(day_index, meal_type, week_key).to_dict()}


@router.get("/ingredients")
def range_ingredients(time_range: str = "all", kitchen=Depends(get_kitchen)):
    return kitchen.meal_plan.collect_ingredients_for_range(time_range)


@router.post("/shopping")
def range_to_shopping(time_range: str = "all", kitchen=Depends(get_kitchen)):
    return kitchen.meal_plan.add_range_to_shopping(time_range)
