import hashlib
import hmac
import logging
import secrets
import requests
from urllib.parse import urlencode

from fastapi import APIRouter, Request, HTTPException, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from core.config import (
    SHOPIFY_API_KEY,
    SHOPIFY_API_SECRET,
    SHOPIFY_API_VERSION,
    SCOPES,
    REDIRECT_URI,
    APP_URL, )
from core.deps import get_db
from core.dev_logger import DevLogger, get_dev_logger
from services.sessions import normalize_shop_domain, save_offline_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

STATE_COOKIE = "shopify_oauth_state"
STATE_COOKIE_MAX_AGE = 1800  # 30 minutes

WEBHOOK_TOPICS = {
    "APP_UNINSTALLED": "/webhooks/app/uninstalled",
    "CUSTOMERS_DATA_REQUEST": "/webhooks/customers/data_request",
    "CUSTOMERS_REDACT": "/webhooks/customers/redact",
    "SHOP_REDACT": "/webhooks/shop/redact",
}


# ----------------------------
# Helpers
# ----------------------------

def verify_hmac(params: dict, received_hmac: str) -> bool:
    sorted_params = "&".join([f"{k}={v}" for k, v in sorted(params.items())])
    digest = hmac.new(
        SHOPIFY_API_SECRET.encode(),
        sorted_params.encode(),
        hashlib.sha256
    ).hexdigest()
    return hmac.compare_digest(digest, received_hmac)


def register_webhook_graphql(shop: str, access_token: str, topic: str, callback_url: str):
    endpoint = f"https://{shop}/admin/api/{SHOPIFY_API_VERSION}/graphql.json"

    query = """
    mutation webhookSubscriptionCreate($topic: WebhookSubscriptionTopic!, $callbackUrl: URL!) {
      webhookSubscriptionCreate(
        topic: $topic,
        webhookSubscription: { callbackUrl: $callbackUrl, format: JSON }
      ) {
        webhookSubscription { id }
        userErrors { field message }
      }
    }
    """

    resp = requests.post(
        endpoint,
        json={"query": query, "variables": {"topic": topic, "callbackUrl": callback_url}},
        headers={
            "X-Shopify-Access-Token": access_token,
            "Content-Type": "application/json",
        },
        timeout=30,
    )

    data = resp.json()
    errors = (data.get("data") or {}).get("webhookSubscriptionCreate", {}).get("userErrors")

    if errors:
        raise RuntimeError(f"Webhook create failed for {topic}: {errors}")


def register_required_webhooks(shop: str, access_token: str, backend_base_url: str):
    for topic, path in WEBHOOK_TOPICS.items():
        register_webhook_graphql(shop, access_token, topic, f"{backend_base_url}{path}")


def embedded_app_url(shop: str) -> str:
    return f"https://{shop}/admin/apps/{SHOPIFY_API_KEY}"


# ----------------------------
# Step 1 - Install redirect (also the re-auth entry point)
# ----------------------------

@router.get("/install")
def install(shop: str):
    shop = normalize_shop_domain(shop)

    state = secrets.token_urlsafe(24)

    params = {
        "client_id": SHOPIFY_API_KEY,
        "scope": SCOPES,
        "redirect_uri": REDIRECT_URI,
        "state": state,
    }

    url = f"https://{shop}/admin/oauth/authorize?" + urlencode(params)
    response = RedirectResponse(url)

    response.set_cookie(
        key=STATE_COOKIE,
        value=state,
        max_age=STATE_COOKIE_MAX_AGE,
        httponly=True,
        secure=True,
        samesite="lax",
    )

    return response


# ----------------------------
# Step 2 - OAuth callback
# ----------------------------

@router.get("/callback")
def shopify_callback(
    request: Request,
    db: Session = Depends(get_db),
    dev_log: DevLogger = Depends(get_dev_logger),
):

    params = dict(request.query_params)

    hmac_received = params.pop("hmac", None)
    code = params.get("code")
    shop = params.get("shop")
    state = params.get("state")

    if not shop or not code or not hmac_received or not state:
        raise HTTPException(status_code=400, detail="Missing shop/code/hmac/state")

    shop = normalize_shop_domain(shop)

    # Validate state (CSRF)
    cookie_state = request.cookies.get(STATE_COOKIE)
    if not cookie_state or not hmac.compare_digest(cookie_state, state):
        raise HTTPException(status_code=400, detail="Invalid OAuth state")

    if not verify_hmac(params, hmac_received):
        raise HTTPException(status_code=400, detail="HMAC validation failed")

    # Exchange code for token
    token_response = requests.post(
        f"https://{shop}/admin/oauth/access_token",
        json={
            "client_id": SHOPIFY_API_KEY,
            "client_secret": SHOPIFY_API_SECRET,
            "code": code,
        },
        timeout=30,
    )

    token_json = token_response.json()
    access_token = token_json.get("access_token")

    if not access_token:
        raise HTTPException(status_code=400, detail=f"Token exchange failed: {token_json}")

    session = save_offline_session(db, shop, access_token, token_json.get("scope"))
    dev_log.store_info(session, context="OAuth callback")

    backend_base_url = (APP_URL or str(request.base_url)).rstrip("/")

    try:
        register_required_webhooks(shop, access_token, backend_base_url)
    except Exception as e:
        logger.exception("Webhook registration failed for %s", shop)
        raise HTTPException(status_code=500, detail=f"Webhook registration failed: {e}")

    response = RedirectResponse(embedded_app_url(shop))
    response.delete_cookie(STATE_COOKIE)

    return response
