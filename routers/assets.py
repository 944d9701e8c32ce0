import logging

from fastapi import APIRouter, Depends, Response

from core.deps import get_assets_root
from services.assets import CORS_HEADERS, AssetPathRejected, asset_headers, read_asset

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assets", tags=["assets"])


@router.options("/{file_path:path}")
def asset_preflight(file_path: str):
    return Response(status_code=204, headers=CORS_HEADERS)


@router.get("/{file_path:path}")
def serve_asset(file_path: str, assets_root: str = Depends(get_assets_root)):
    if not file_path:
        return Response("Not Found", status_code=404, media_type="text/plain")

    try:
        content = read_asset(assets_root, file_path)
    except AssetPathRejected:
        return Response("Forbidden", status_code=403, media_type="text/plain")
    except FileNotFoundError:
        return Response("Not Found", status_code=404, media_type="text/plain")
    except OSError:
        logger.exception("Error serving asset %s", file_path)
        return Response(
            "Internal Server Error",
            status_code=500,
            media_type="text/plain",
            headers=CORS_HEADERS,
        )

    return Response(content, status_code=200, headers=asset_headers(file_path))
