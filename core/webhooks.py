import base64
import hashlib
import hmac
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request, HTTPException, Depends
from sqlalchemy.orm import Session

from core.config import SHOPIFY_API_SECRET
from core.deps import get_db
from core.dev_logger import DevLogger, get_dev_logger
from models import Submission
from services.sessions import delete_sessions_for_shop

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


# ----------------------------
# Helpers
# ----------------------------

def normalize_shop(shop: str | None) -> str | None:
    if not shop:
        return None
    return shop.replace("https://", "").replace("http://", "").strip().strip("/")


def verify_webhook(data: bytes, hmac_header: str | None) -> bool:
    if not hmac_header:
        return False

    digest = hmac.new(
        SHOPIFY_API_SECRET.encode(),
        data,
        hashlib.sha256
    ).digest()

    computed_hmac = base64.b64encode(digest).decode()
    return hmac.compare_digest(computed_hmac, hmac_header)


async def verified_payload(request: Request) -> dict:
    raw_body = await request.body()
    hmac_header = request.headers.get("X-Shopify-Hmac-Sha256")

    if not verify_webhook(raw_body, hmac_header):
        raise HTTPException(status_code=401, detail="Webhook HMAC failed")

    try:
        return await request.json()
    except ValueError:
        return {}


def customer_of(payload: dict) -> tuple:
    customer = payload.get("customer") or {}
    return customer.get("id"), customer.get("email")


# ----------------------------
# App uninstall webhook
# ----------------------------

@router.post("/app/uninstalled")
async def app_uninstalled(
    request: Request,
    db: Session = Depends(get_db),
    dev_log: DevLogger = Depends(get_dev_logger),
):
    payload = await verified_payload(request)
    shop = normalize_shop(request.headers.get("X-Shopify-Shop-Domain"))
    dev_log.webhook("app/uninstalled", shop, payload)

    if shop:
        try:
            deleted = delete_sessions_for_shop(db, shop)
            logger.info("Deleted %d session(s) for uninstalled shop %s", deleted, shop)
        except Exception:
            db.rollback()
            logger.exception("Error processing uninstall for %s", shop)

    return {"status": "uninstalled processed"}


# ----------------------------
# GDPR / Privacy webhooks
# REQUIRED for Shopify public apps
# ----------------------------

@router.post("/customers/data_request")
async def customers_data_request(
    request: Request,
    db: Session = Depends(get_db),
    dev_log: DevLogger = Depends(get_dev_logger),
):
    payload = await verified_payload(request)
    shop = normalize_shop(request.headers.get("X-Shopify-Shop-Domain"))
    dev_log.webhook("customers/data_request", shop, payload)

    customer_id, customer_email = customer_of(payload)

    try:
        count = (
            db.query(Submission)
            .filter(Submission.submitter_email == customer_email)
            .count()
        ) if customer_email else 0

        logger.info(
            "GDPR_DATA_REQUEST shop=%s customer_id=%s submissions=%d requested_at=%s",
            shop, customer_id, count, datetime.now(timezone.utc).isoformat(),
        )
    except Exception:
        logger.exception("Error processing customer data request")

    return {"status": "ok"}


@router.post("/customers/redact")
async def customers_redact(
    request: Request,
    db: Session = Depends(get_db),
    dev_log: DevLogger = Depends(get_dev_logger),
):
    payload = await verified_payload(request)
    shop = normalize_shop(request.headers.get("X-Shopify-Shop-Domain"))
    dev_log.webhook("customers/redact", shop, payload)

    customer_id, customer_email = customer_of(payload)
    if not customer_email:
        return {"status": "ok"}

    try:
        redacted_at = datetime.now(timezone.utc).isoformat()
        anonymized = (
            db.query(Submission)
            .filter(Submission.submitter_email == customer_email)
            .update(
                {
                    Submission.submitter_name: "Anonymous User",
                    Submission.submitter_email: f"redacted_{customer_id}@gdpr-deleted.local",
                    Submission.admin_notes: f"[GDPR] Customer data redacted on {redacted_at}",
                },
                synchronize_session=False,
            )
        )
        db.commit()
        logger.info(
            "GDPR_CUSTOMER_REDACTION shop=%s customer_id=%s submissions=%d",
            shop, customer_id, anonymized,
        )
    except Exception:
        db.rollback()
        logger.exception("Error processing customer redaction")

    return {"status": "ok"}


@router.post("/shop/redact")
async def shop_redact(
    request: Request,
    db: Session = Depends(get_db),
    dev_log: DevLogger = Depends(get_dev_logger),
):
    payload = await verified_payload(request)
    shop = normalize_shop(payload.get("shop_domain") or request.headers.get("X-Shopify-Shop-Domain"))
    dev_log.webhook("shop/redact", shop, payload)

    if shop:
        try:
            sessions_deleted = delete_sessions_for_shop(db, shop)
            submissions_deleted = (
                db.query(Submission)
                .filter(Submission.shop == shop)
                .delete(synchronize_session=False)
            )
            db.commit()
            logger.info(
                "GDPR_SHOP_REDACTION shop=%s sessions=%d submissions=%d",
                shop, sessions_deleted, submissions_deleted,
            )
        except Exception:
            db.rollback()
            logger.exception("Error processing shop redaction for %s", shop)

    return {"status": "ok"}
