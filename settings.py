import os

# ------------------------------------------------------------
# Configuration
# ------------------------------------------------------------

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./estoquehub.db")

# JWT config
JWT_SECRET_KEY = os.getenv("JWT_SECRET", "segredo-dev")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
TOKEN_EXPIRATION_HOURS = int(os.getenv("TOKEN_EXPIRATION_HOURS", "8"))

PORT = int(os.getenv("PORT", "10000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# client side
API_URL = os.getenv("ESTOQUEHUB_API_URL", "http://localhost:10000")
STORAGE_PATH = os.getenv(
    "ESTOQUEHUB_STORAGE", os.path.join(os.path.expanduser("~"), ".estoquehub", "storage.json")
)
SESSION_KEY = "estoquehub_session"
