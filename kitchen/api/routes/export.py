from datetime import datetime

from fastapi import APIRouter, Depends, Response

from kitchen.api.deps import get_kitchen
from kitchen.utilities.export_import import (
    DataExporter, product_csv_template, recipe_csv_template, recipe_info_template,
    recipe_ingredients_template, recipe_only_template,
)

router = APIRouter(prefix="/api", tags=["export"])

TEMPLATES = {
    "products": product_csv_template,
    "recipes": recipe_csv_template,
    "recipe-info": recipe_info_template,
    "recipe-ingredients": recipe_ingredients_template,
    "recipe-only": recipe_only_template,
}


def _csv_response(content: str, name: str) -> Response:
    return Response(content=content, media_type="text/csv",
                    headers={"Content-Disposition": f'attachment; filename="{name}"'})


@router.get("/export")
def export_json(kitchen=Depends(get_kitchen)):
    return DataExporter(kitchen).export_json()


@router.get("/export/products.csv")
def export_products_csv(kitchen=Depends(get_kitchen)):
    stamp = datetime.now().strftime("%Y%m%d")
    return _csv_response(DataExporter(kitchen).export_products_csv(), f"products_{stamp}.csv")


@router.get("/export/recipes.csv")
def export_recipes_csv(kitchen=Depends(get_kitchen)):
    stamp = datetime.now().strftime("%Y%m%d")
    return _csv_response(DataExporter(kitchen).export_recipes_csv(), f"recipes_{stamp}.csv")


@router.get("/templates/{name}")
def csv_template(name: str):
    if name not in TEMPLATES:
        raise ValueError(f"Unknown template '{name}', expected one of: {', '.join(TEMPLATES)}")
    return _csv_response(TEMPLATES[name](), f"{name}_template.csv")
