"""Account API routes for the mock store"""

from fastapi import APIRouter, Depends

from ..database.users import user_db
from ..models.user import AddressRequest
from ..responses import ApiError, success
from ..security.auth import Shopper, require_user

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/addresses")
async def get_addresses(shopper: Shopper = Depends(require_user)):
    """List saved addresses"""
    return success(shopper.user.addresses)


@router.post("/addresses", status_code=201)
async def add_address(
    request: AddressRequest,
    shopper: Shopper = Depends(require_user),
):
    """Save a new address"""
    address = user_db.add_address(shopper.user, request)
    return success(address, "Address added")


@router.put("/addresses/{address_id}/default")
async def set_default_address(
    address_id: str,
    shopper: Shopper = Depends(require_user),
):
    """Make an address the default"""
    address = user_db.set_default_address(shopper.user, address_id)
    if not address:
        raise ApiError("Address not found", 404)
    return success(shopper.user.addresses, "Default address updated")


@router.put("/addresses/{address_id}")
async def update_address(
    address_id: str,
    request: AddressRequest,
    shopper: Shopper = Depends(require_user),
):
    """Replace a saved address"""
    address = user_db.update_address(shopper.user, address_id, request)
    if not address:
        raise ApiError("Address not found", 404)
    return success(address, "Address updated")


@router.delete("/addresses/{address_id}")
async def delete_address(
    address_id: str,
    shopper: Shopper = Depends(require_user),
):
    """Delete a saved address"""
    if not user_db.delete_address(shopper.user, address_id):
        raise ApiError("Address not found", 404)
    return success(shopper.user.addresses, "Address deleted")


@router.get("/loyalty-points")
async def get_loyalty_points(shopper: Shopper = Depends(require_user)):
    """Point balance and what it is worth"""
    points = shopper.user.loyalty_points
    return success(
        {
            "loyaltyPoints": points,
            "equivalentValue": points * user_db.POINT_VALUE,
        }
    )
