import os


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

CONTENT_TYPES = {
    ".css": "text/css",
    ".js": "application/javascript",
    ".ttf": "font/ttf",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
}

FONT_EXTENSIONS = {".ttf", ".woff", ".woff2"}

DEFAULT_CONTENT_TYPE = "application/octet-stream"
CACHE_CONTROL = "public, max-age=31536000, immutable"


class AssetPathRejected(Exception):
    pass


def extension_of(file_path: str) -> str:
    return os.path.splitext(file_path)[1].lower()


def content_type_for(file_path: str) -> str:
    return CONTENT_TYPES.get(extension_of(file_path), DEFAULT_CONTENT_TYPE)


def asset_headers(file_path: str) -> dict:
    headers = {
        **CORS_HEADERS,
        "Content-Type": content_type_for(file_path),
        "Cache-Control": CACHE_CONTROL,
    }
    if extension_of(file_path) in FONT_EXTENSIONS:
        headers["Access-Control-Allow-Headers"] = "*"
        headers["Cross-Origin-Resource-Policy"] = "cross-origin"
    return headers


def read_asset(root: str, file_path: str) -> bytes:
    """
    Read ``file_path`` below ``root``.

    Raises AssetPathRejected for any path containing "..", before touching the
    file system. FileNotFoundError and other OSErrors propagate.
    """
    if ".." in file_path:
        raise AssetPathRejected(file_path)

    full_path = os.path.join(root, file_path.lstrip("/"))
    with open(full_path, "rb") as handle:
        return handle.read()
