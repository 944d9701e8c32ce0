import os
from dotenv import load_dotenv

load_dotenv()

SHOPIFY_API_KEY = os.getenv("SHOPIFY_API_KEY")
SHOPIFY_API_SECRET = os.getenv("SHOPIFY_API_SECRET", "")
SCOPES = os.getenv("SCOPES", "read_content,write_content,write_files")
REDIRECT_URI = os.getenv("REDIRECT_URI")
SHOPIFY_API_VERSION = os.getenv("SHOPIFY_API_VERSION", "2026-01")
SHOP_DOMAIN_SUFFIX = ".myshopify.com"

APP_URL = os.getenv("APP_URL", "")
APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
ASSETS_DIR = os.getenv("ASSETS_DIR", os.path.join("public", "assets"))
