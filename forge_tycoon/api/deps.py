"""
Shared dependencies for the API module.
"""

from fastapi import HTTPException, status

from forge_tycoon.gameplay.inventory import PurchaseResult
from forge_tycoon.gameplay.shop import Shop
from forge_tycoon.persistence import SaveManager, get_save_manager

# Global shop instance
_shop: Shop | None = None


def get_shop() -> Shop | None:
    """Get the global shop instance."""
    return _shop


def set_shop(shop: Shop | None) -> None:
    """Set the global shop instance."""
    global _shop
    _shop = shop


def require_shop() -> Shop:
    """FastAPI dependency: the running shop, or 503 before startup."""
    shop = get_shop()
    if shop is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Shop not initialized",
        )
    return shop


def require_save_manager() -> SaveManager:
    """FastAPI dependency: the save manager, or 503 before startup."""
    manager = get_save_manager()
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Save manager not initialized",
        )
    return manager


def bad_request(reason: str | None) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=reason or "Request could not be completed",
    )


def not_found(what: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{what} not found",
    )


def purchase_or_400(result: PurchaseResult) -> dict:
    """Turn a PurchaseResult into a response body, or raise 400."""
    if not result:
        raise bad_request(result.reason)
    return {"success": True, "cost": result.cost}
