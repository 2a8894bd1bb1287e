from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from kitchen.domain.errors import (
    DuplicateName, EmptyInput, InvalidReference, InvalidValue, KitchenError, NotFound, ParseError,
    ProtectedDefault,
)
from kitchen.api.routes import categories, events, export, imports, plan, products, recipes

# Logging
logger = logging.getLogger("kitchen_app")

STATUS_BY_ERROR = (
    (NotFound, 404),
    (DuplicateName, 409),
    (ProtectedDefault, 409),
    (InvalidReference, 422),
    (EmptyInput, 400),
    (InvalidValue, 400),
    (ParseError, 400),
)

# Initialize FastAPI app
app = FastAPI(title="Kitchen: Shopping, Pantry, Recipes & Meal Plan API")

# Include routers
for module in (categories, products, recipes, plan, imports, export, events):
    app.include_router(module.router)


def status_for(error: KitchenError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 500


@app.exception_handler(KitchenError)
async def kitchen_error_handler(request: Request, exc: KitchenError):
    status = status_for(exc)
    log = logger.error if status >= 500 else logger.warning
    log("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=status, content={"error": exc.code, "message": exc.message, "details": exc.details})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    logger.warning("%s %s -> invalid value: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content={"error": "invalid_value", "message": str(exc)})


@app.get("/api/health")
def health():
    return {"status": "ok"}
