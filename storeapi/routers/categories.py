from fastapi import APIRouter, Depends

from storeapi.core import responses
from storeapi.schemas import CategoryCreate, CategoryOut, CategoryUpdate
from storeapi.services import category_service
from storeapi.services.session_service import require_admin

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("")
def index():
    categories = [CategoryOut.model_validate(c) for c in category_service.list_categories()]
    return responses.success(categories, "Categories retrieved successfully")


@router.post("", dependencies=[Depends(require_admin)])
def store(body: CategoryCreate):
    category = category_service.create_category(body.model_dump())
    return responses.success(CategoryOut.model_validate(category), "Category created successfully", 201)


@router.put("/{category_id}", dependencies=[Depends(require_admin)])
def update(category_id: int, body: CategoryUpdate):
    category = category_service.update_category(category_id, body.model_dump(exclude_unset=True))
    return responses.success(CategoryOut.model_validate(category), "Category updated successfully")


@router.delete("/{category_id}", dependencies=[Depends(require_admin)])
def delete(category_id: int):
    category_service.delete_category(category_id)
    return responses.success(None, "Category deleted successfully")
