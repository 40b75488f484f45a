# greengrove/handlers/catalog_handlers.py
from typing import List, Optional
from fastapi import APIRouter, Depends
from ..services import CatalogService
from .base_handler import get_catalog_service
from .schemas import (
    CategoryResponse,
    CreateCategoryRequest,
    CreateProductRequest,
    CreateServiceRequest,
    ProductResponse,
    ServiceResponse,
    UpdatedResponse,
    UpdateProductRequest,
    UpdateServiceRequest,
)

category_router = APIRouter(prefix="/categories", tags=["catalog"])
product_router = APIRouter(prefix="/products", tags=["catalog"])
service_router = APIRouter(prefix="/services", tags=["catalog"])


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------
@category_router.get("", response_model=List[CategoryResponse])
async def list_categories(catalog: CatalogService = Depends(get_catalog_service)):
    return [CategoryResponse.model_validate(c) for c in await catalog.list_categories()]


@category_router.post("", status_code=201, response_model=CategoryResponse)
async def create_category(body: CreateCategoryRequest,
                          catalog: CatalogService = Depends(get_catalog_service)):
    return CategoryResponse.model_validate(await catalog.create_category(body.name))


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
@product_router.get("", response_model=List[ProductResponse])
async def list_products(
    category_id: Optional[int] = None,
    q: Optional[str] = None,
    active: Optional[bool] = None,
    page: int = 1,
    limit: int = 20,
    catalog: CatalogService = Depends(get_catalog_service),
):
    products = await catalog.list_products(
        category_id=category_id, q=q, active=active, page=page, limit=limit
    )
    return [ProductResponse.model_validate(p) for p in products]


@product_router.post("", status_code=201, response_model=ProductResponse)
async def create_product(body: CreateProductRequest,
                         catalog: CatalogService = Depends(get_catalog_service)):
    return ProductResponse.model_validate(await catalog.create_product(body.model_dump()))


@product_router.get("/id/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, catalog: CatalogService = Depends(get_catalog_service)):
    return ProductResponse.model_validate(await catalog.get_product(product_id))


@product_router.get("/{slug}", response_model=ProductResponse)
async def get_product_by_slug(slug: str, catalog: CatalogService = Depends(get_catalog_service)):
    return ProductResponse.model_validate(await catalog.get_product_by_slug(slug))


@product_router.patch("/{product_id}", response_model=UpdatedResponse)
async def update_product(product_id: int, body: UpdateProductRequest,
                         catalog: CatalogService = Depends(get_catalog_service)):
    fields = body.model_dump(exclude_unset=True)
    return UpdatedResponse(updated=await catalog.update_product(product_id, fields))


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------
@service_router.get("", response_model=List[ServiceResponse])
async def list_services(active: Optional[bool] = None,
                        catalog: CatalogService = Depends(get_catalog_service)):
    return [ServiceResponse.model_validate(s) for s in await catalog.list_services(active=active)]


@service_router.post("", status_code=201, response_model=ServiceResponse)
async def create_service(body: CreateServiceRequest,
                         catalog: CatalogService = Depends(get_catalog_service)):
    return ServiceResponse.model_validate(await catalog.create_service(body.model_dump()))


@service_router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(service_id: int, catalog: CatalogService = Depends(get_catalog_service)):
    return ServiceResponse.model_validate(await catalog.get_service(service_id))


@service_router.patch("/{service_id}", response_model=UpdatedResponse)
async def update_service(service_id: int, body: UpdateServiceRequest,
                         catalog: CatalogService = Depends(get_catalog_service)):
    fields = body.model_dump(exclude_unset=True)
    return UpdatedResponse(updated=await catalog.update_service(service_id, fields))
