from typing import Optional

from fastapi import APIRouter, Depends, Query

from kitchen.api.deps import get_kitchen
from kitchen.utilities.validators import NamedItemInput, ProductInput, ProductUpdate

router = APIRouter(prefix="/api/products", tags=["products"])

VIEWS = ("shopping", "pantry", "in-stock", "out-of-stock", "in-season", "out-of-season", "completed")


def _dump(products):
    return [p.to_dict() for p in products]


@router.get("")
def list_products(search: str = "", stock: str = "", category: str = "", kitchen=Depends(get_kitchen)):
    return _dump(kitchen.products.filter(search, stock, category))


@router.get("/statistics")
def product_statistics(kitchen=Depends(get_kitchen)):
    return kitchen.products.statistics()


@router.get("/views/{view}")
def product_view(view: str, kitchen=Depends(get_kitchen)):
    """Derived lists: every view is a filter over the same product records."""
    store = kitchen.products
    views = {
        "shopping": store.shopping_view,
        "pantry": store.pantry_view,
        "in-stock": lambda: store.by_stock(True),
        "out-of-stock": lambda: store.by_stock(False),
        "in-season": lambda: store.by_season(True),
        "out-of-season": lambda: store.by_season(False),
        "completed": store.completed_shopping,
    }
    if view not in views:
        raise ValueError(f"Unknown view '{view}', expected one of: {', '.join(VIEWS)}")
    return _dump(views[view]())


@router.get("/orphans")
def orphaned_products(kitchen=Depends(get_kitchen)):
    return _dump(kitchen.products.find_orphaned())


@router.post("/orphans/{product_id}/fix")
def fix_orphan(product_id: str, category: str = Query(...), kitchen=Depends(get_kitchen)):
    return kitchen.products.fix_orphan(product_id, category).to_dict()


@router.delete("/orphans/{product_id}")
def delete_orphan(product_id: str, kitchen=Depends(get_kitchen)):
    return {"deleted": kitchen.products.delete_orphan(product_id).id}


@router.post("", status_code=201)
def add_product(payload: ProductInput, kitchen=Depends(get_kitchen)):
    return kitchen.products.add(payload.name, payload.category, **payload.flags()).to_dict()


@router.get("/{product_id}")
def get_product(product_id: str, kitchen=Depends(get_kitchen)):
    product = kitchen.products.require(product_id)
    data = product.to_dict()
    data["recipes"] = [{"id": r.id, "name": r.name} for r in kitchen.recipes.recipes_for_product(product)]
    return data


@router.put("/{product_id}")
def edit_product(product_id: str, payload: ProductUpdate, kitchen=Depends(get_kitchen)):
    return kitchen.products.edit(product_id, name=payload.name, category=payload.category,
                                 **payload.flags()).to_dict()


@router.delete("/{product_id}")
def delete_product(product_id: str, kitchen=Depends(get_kitchen)):
    return {"deleted": kitchen.products.delete(product_id).id}


@router.post("/{product_id}/toggle/{flag}")
def toggle_flag(product_id: str, flag: str, kitchen=Depends(get_kitchen)):
    return kitchen.products.toggle(product_id, flag).to_dict()


# --- shopping list -------------------------------------------------------------
@router.post("/shopping/items", status_code=201)
def add_shopping_item(payload: NamedItemInput, kitchen=Depends(get_kitchen)):
    return kitchen.products.add_name_to_shopping(payload.name, payload.category).to_dict()


@router.post("/{product_id}/shopping")
def add_to_shopping(product_id: str, kitchen=Depends(get_kitchen)):
    return kitchen.products.add_to_shopping(product_id).to_dict()


@router.delete("/{product_id}/shopping")
def remove_from_shopping(product_id: str, kitchen=Depends(get_kitchen)):
    return kitchen.products.remove_from_shopping(product_id).to_dict()


@router.post("/{product_id}/complete")
def complete_item(product_id: str, completed: Optional[bool] = True, kitchen=Depends(get_kitchen)):
    return kitchen.products.mark_completed(product_id, bool(completed)).to_dict()


@router.post("/shopping/clear-completed")
def clear_completed(kitchen=Depends(get_kitchen)):
    return {"cleared": [p.id for p in kitchen.products.clear_completed_shopping()]}


# --- pantry ----------------------------------------------------------------------
@router.post("/pantry/items", status_code=201)
def add_pantry_item(payload: NamedItemInput, kitchen=Depends(get_kitchen)):
    return kitchen.products.add_to_pantry(payload.name, payload.category).to_dict()


@router.delete("/{product_id}/pantry")
def remove_from_pantry(product_id: str, kitchen=Depends(get_kitchen)):
    return kitchen.products.remove_from_pantry(product_id).to_dict()
