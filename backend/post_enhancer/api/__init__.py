# Router aggregator – import each route module here and expose ``api_router``
# for convenient inclusion in the FastAPI app.

from fastapi import APIRouter

from . import routes_callback, routes_enhance, routes_images


api_router = APIRouter()
api_router.include_router(routes_enhance.router, tags=["enhance"])
api_router.include_router(routes_callback.router, tags=["callbacks"])
api_router.include_router(routes_images.router, tags=["images"])
