from fastapi import APIRouter, Depends, File, Form, UploadFile

from kitchen.api.deps import get_kitchen
from kitchen.logic.importing.product_import import import_products_csv
from kitchen.utilities.export_import import DataImporter
from kitchen.utilities.validators import CsvTextInput, TwoFileCsvInput

router = APIRouter(prefix="/api/import", tags=["import"])


async def _read(upload: UploadFile) -> str:
    return (await upload.read()).decode("utf-8-sig")


@router.post("/products")
async def import_products(file: UploadFile = File(...), mode: str = Form("replace"), kitchen=Depends(get_kitchen)):
    result = import_products_csv(await _read(file), kitchen.products, kitchen.categories, mode)
    return result.to_dict()


@router.post("/products/text")
def import_products_text(payload: CsvTextInput, kitchen=Depends(get_kitchen)):
    return import_products_csv(payload.text, kitchen.products, kitchen.categories, payload.mode).to_dict()


@router.post("/recipes")
async def import_recipes(file: UploadFile = File(...), kitchen=Depends(get_kitchen)):
    return kitchen.recipe_importer.import_single_file(await _read(file)).to_dict()


@router.post("/recipes/text")
def import_recipes_text(payload: CsvTextInput, kitchen=Depends(get_kitchen)):
    return kitchen.recipe_importer.import_single_file(payload.text).to_dict()


@router.post("/recipes/two-file")
async def import_recipes_two_files(info_file: UploadFile = File(...), ingredients_file: UploadFile = File(...),
                                   kitchen=Depends(get_kitchen)):
    result = kitchen.recipe_importer.import_two_files(await _read(info_file), await _read(ingredients_file))
    return result.to_dict()


@router.post("/recipes/two-file/text")
def import_recipes_two_files_text(payload: TwoFileCsvInput, kitchen=Depends(get_kitchen)):
    return kitchen.recipe_importer.import_two_files(payload.info_text, payload.ingredients_text).to_dict()


@router.post("/recipes/recipe-only")
async def import_recipe_only(file: UploadFile = File(...), kitchen=Depends(get_kitchen)):
    return kitchen.recipe_importer.import_recipe_only(await _read(file)).to_dict()


@router.post("/json")
def import_json(data: dict, kitchen=Depends(get_kitchen)):
    """Restore a full JSON export; sections missing from the body are left alone."""
    return DataImporter(kitchen).import_json(data)
