import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from core.deps import get_db
from core.dev_logger import DevLogger, get_dev_logger
from services.sessions import delete_sessions_for_shop, normalize_shop_domain

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

REAUTH_PATH = "/auth/install"


@router.get("/refresh-scopes")
def refresh_scopes(
    shop: str | None = None,
    db: Session = Depends(get_db),
    dev_log: DevLogger = Depends(get_dev_logger),
):
    """
    Drop every stored session of a shop and send it back through OAuth so the
    new access token carries the scopes currently configured.
    """
    if not shop or not shop.strip():
        raise HTTPException(
            status_code=400,
            detail="Shop parameter required. Use: /admin/refresh-scopes?shop=yourshop.myshopify.com",
        )

    normalized_shop = normalize_shop_domain(shop)

    try:
        deleted = delete_sessions_for_shop(db, normalized_shop)
    except Exception as e:
        logger.exception("Failed to delete sessions for %s", normalized_shop)
        return JSONResponse(
            status_code=500,
            content={
                "error": str(e),
                "message": "Failed to refresh scopes. Try manually reinstalling the app.",
            },
        )

    logger.info("Deleted %d session(s) for %s", deleted, normalized_shop)
    dev_log.app_action("refresh-scopes", {"shop": normalized_shop, "deleted": deleted})

    return RedirectResponse(f"{REAUTH_PATH}?" + urlencode({"shop": normalized_shop}), status_code=302)
