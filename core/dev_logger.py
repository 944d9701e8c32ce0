"""
Logging setup plus the development-only diagnostic logger.

The diagnostic logger is chosen once at startup: verbose outside production,
a no-op in production. Routes receive it through ``Depends(get_dev_logger)``.
"""

import json
import logging
from abc import ABC, abstractmethod
from functools import lru_cache

from core.config import APP_ENV, LOG_LEVEL

logger = logging.getLogger("memorial.dev")

RULE = "-" * 60


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _mask(token: str | None) -> str:
    if not token:
        return "N/A"
    return "***" + token[-4:]


class DevLogger(ABC):
    @abstractmethod
    def store_info(self, session, context: str = "Session") -> None:
        ...

    @abstractmethod
    def webhook(self, topic: str, shop: str | None, payload) -> None:
        ...

    @abstractmethod
    def app_action(self, action: str, data: dict | None = None) -> None:
        ...


class NoopDevLogger(DevLogger):
    def store_info(self, session, context: str = "Session") -> None:
        return None

    def webhook(self, topic: str, shop: str | None, payload) -> None:
        return None

    def app_action(self, action: str, data: dict | None = None) -> None:
        return None


class StdlibDevLogger(DevLogger):
    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def store_info(self, session, context: str = "Session") -> None:
        lines = [RULE, f"STORE INFORMATION ({context})", RULE]
        if session is None:
            lines.append("No session available")
        else:
            lines += [
                f"Shop:          {session.shop or 'N/A'}",
                f"Session ID:    {session.id or 'N/A'}",
                f"Access Token:  {_mask(session.access_token)}",
                f"Is Online:     {'Yes' if session.is_online else 'No'}",
                f"Scope:         {session.scope or 'N/A'}",
            ]
            if session.expires:
                lines.append(f"Expires:       {session.expires.isoformat()}")
        lines.append(RULE)
        self.log.info("\n".join(lines))

    def webhook(self, topic: str, shop: str | None, payload) -> None:
        preview = json.dumps(payload, indent=2, default=str)[:200]
        self.log.info(
            "\n".join([RULE, "WEBHOOK RECEIVED", RULE,
                       f"Topic:           {topic}",
                       f"Shop:            {shop}",
                       f"Payload Preview: {preview}...", RULE])
        )

    def app_action(self, action: str, data: dict | None = None) -> None:
        lines = [RULE, f"APP ACTION: {action}", RULE]
        if data:
            lines.append(json.dumps(data, indent=2, default=str))
        lines.append(RULE)
        self.log.info("\n".join(lines))


def select_dev_logger(app_env: str) -> DevLogger:
    if app_env == "production":
        return NoopDevLogger()
    return StdlibDevLogger()


@lru_cache(maxsize=1)
def get_dev_logger() -> DevLogger:
    return select_dev_logger(APP_ENV)
