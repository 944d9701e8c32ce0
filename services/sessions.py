from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.config import SHOP_DOMAIN_SUFFIX
from models import ShopSession


def normalize_shop_domain(shop: str) -> str:
    shop = shop.replace("https://", "").replace("http://", "").strip().strip("/")
    if SHOP_DOMAIN_SUFFIX not in shop:
        shop = f"{shop}{SHOP_DOMAIN_SUFFIX}"
    return shop


def offline_session_id(shop: str) -> str:
    return f"offline_{shop}"


def delete_sessions_for_shop(database: Session, shop: str) -> int:
    """Remove every stored session of ``shop``, matching on shop or session id."""
    deleted = (
        database.query(ShopSession)
        .filter(or_(ShopSession.shop == shop, ShopSession.id.contains(shop, autoescape=True)))
        .delete(synchronize_session=False)
    )
    database.commit()
    return deleted


def save_offline_session(database: Session, shop: str, access_token: str, scope: str | None) -> ShopSession:
    session_id = offline_session_id(shop)
    record = database.query(ShopSession).filter(ShopSession.id == session_id).first()

    if record:
        record.access_token = access_token
        record.scope = scope
    else:
        record = ShopSession(
            id=session_id,
            shop=shop,
            is_online=False,
            scope=scope,
            access_token=access_token,
        )
        database.add(record)

    database.commit()
    return record
