from fastapi import APIRouter, Depends

from storeapi.core import responses
from storeapi.schemas import CouponCreate, CouponOut, CouponUpdate
from storeapi.services import coupon_service
from storeapi.services.session_service import require_admin

router = APIRouter(prefix="/coupons", tags=["coupons"])


@router.get("")
def index():
    coupons = [CouponOut.model_validate(c) for c in coupon_service.list_coupons()]
    return responses.success(coupons, "Coupons retrieved successfully")


@router.post("", dependencies=[Depends(require_admin)])
def store(body: CouponCreate):
    coupon = coupon_service.create_coupon(body.model_dump())
    return responses.success(CouponOut.model_validate(coupon), "Coupon created successfully", 201)


@router.put("/{coupon_id}", dependencies=[Depends(require_admin)])
def update(coupon_id: int, body: CouponUpdate):
    coupon = coupon_service.update_coupon(coupon_id, body.model_dump(exclude_unset=True))
    return responses.success(CouponOut.model_validate(coupon), "Coupon updated successfully")


@router.delete("/{coupon_id}", dependencies=[Depends(require_admin)])
def delete(coupon_id: int):
    coupon_service.delete_coupon(coupon_id)
    return responses.success(None, "Coupon deleted successfully")
