from fastapi import APIRouter, Depends

from kitchen.api.deps import get_kitchen
from kitchen.utilities.validators import CategoryInput, CategoryUpdate, ReorderInput

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("")
def list_categories(kitchen=Depends(get_kitchen)):
    return [c.to_dict() for c in kitchen.categories.get_all()]


@router.post("", status_code=201)
def add_category(payload: CategoryInput, kitchen=Depends(get_kitchen)):
    return kitchen.categories.add(payload.name, payload.emoji).to_dict()


@router.put("/{category_id}")
def edit_category(category_id: str, payload: CategoryUpdate, kitchen=Depends(get_kitchen)):
    return kitchen.categories.edit(category_id, name=payload.name, emoji=payload.emoji).to_dict()


@router.delete("/{category_id}")
def delete_category(category_id: str, kitchen=Depends(get_kitchen)):
    """Delete a custom category; its products move to 'other'."""
    removed = kitchen.categories.delete(category_id)
    return {"deleted": removed.id}


@router.post("/reorder")
def reorder_categories(payload: ReorderInput, kitchen=Depends(get_kitchen)):
    if payload.order is not None:
        categories = kitchen.categories.reorder(payload.order)
    elif payload.from_index is not None and payload.to_index is not None:
        categories = kitchen.categories.move(payload.from_index, payload.to_index)
    else:
        raise ValueError("Provide either 'order' or 'fromIndex' and 'toIndex'")
    return [c.to_dict() for c in categories]
