import os

# Settings are read once when core.config is imported.
os.environ.setdefault("SHOPIFY_API_KEY", "test-api-key")
os.environ.setdefault("SHOPIFY_API_SECRET", "test-secret")
os.environ.setdefault("REDIRECT_URI", "https://app.example.com/auth/callback")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("APP_ENV", "test")
