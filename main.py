from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse, PlainTextResponse

from core.auth import router as auth_router
from core.dev_logger import configure_logging
from core.webhooks import router as webhooks_router
from db import Base, engine
from routers.admin import router as admin_router
from routers.assets import router as assets_router
from routers.stories import router as stories_router


configure_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(lifespan=lifespan)


@app.exception_handler(HTTPException)
async def http_exception_handler(_: Request, exc: HTTPException):
    if exc.status_code == 401:
        return JSONResponse(status_code=401, content={"error": "invalid webhook signature"})
    if exc.status_code == 500:
        return JSONResponse(status_code=500, content={"error": "server error"})

    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(_: Request, __: Exception):
    return JSONResponse(status_code=500, content={"error": "server error"})


# ----------------------------
# Shopify iframe embedding headers
# ----------------------------

@app.middleware("http")
async def add_shopify_headers(request: Request, call_next):
    response = await call_next(request)

    response.headers["Content-Security-Policy"] = (
        "frame-ancestors https://*.myshopify.com https://admin.shopify.com;"
    )

    return response


# ----------------------------
# Routers
# ----------------------------

app.include_router(auth_router)
app.include_router(webhooks_router)
app.include_router(stories_router)
app.include_router(assets_router)
app.include_router(admin_router)


# ----------------------------
# Health checks
# ----------------------------

@app.get("/")
def health():
    return {"status": "Memorial stories backend running"}


@app.get("/healthz", response_class=PlainTextResponse)
def healthz():
    return "OK"
