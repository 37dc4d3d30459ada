import os
from dotenv import load_dotenv

load_dotenv()

SERVER_MODE = "server"
SERVERLESS_MODE = "serverless"


def _default_mode() -> str:
    if os.getenv("VERCEL") == "1":
        return SERVERLESS_MODE
    return SERVER_MODE


class Settings:
    PROJECT_NAME: str = "LoanLink"

    def __init__(self):
        self.MONGODB_URI: str = os.getenv("MONGODB_URI")
        self.MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "loanlink")
        self.STRIPE_SECRET_KEY: str = os.getenv("STRIPE_SECRET_KEY")
        self.PAYMENT_CURRENCY: str = os.getenv("PAYMENT_CURRENCY", "usd")
        self.PORT: int = int(os.getenv("PORT", "3000"))
        self.DEPLOYMENT_MODE: str = os.getenv("DEPLOYMENT_MODE", _default_mode()).lower()
        self.DEFAULT_USER_ROLE: str = os.getenv("DEFAULT_USER_ROLE", "borrower")
        self.CLIENT_URL: str = os.getenv("CLIENT_URL", "*")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        if self.DEPLOYMENT_MODE not in (SERVER_MODE, SERVERLESS_MODE):
            raise ValueError(
                f"DEPLOYMENT_MODE must be '{SERVER_MODE}' or '{SERVERLESS_MODE}', got '{self.DEPLOYMENT_MODE}'"
            )

    @property
    def is_serverless(self) -> bool:
        return self.DEPLOYMENT_MODE == SERVERLESS_MODE

    @property
    def allowed_origins(self):
        raw_origins = self.CLIENT_URL or ""
        return [o.strip() for o in raw_origins.split(",") if o.strip()] or ["*"]


settings = Settings()


# Keeps credentials out of log lines
def mask_mongo_uri(uri: str) -> str:
    import re
    m = re.match(r'(?P<prefix>mongodb(?:\+srv)?://)(?:(?P<creds>[^@]+)@)?(?P<rest>.+)', uri or "")
    if not m:
        return "mongodb://<redacted>"
    host_part = m.group('rest').split('/')[0].split('?')[0]
    return f"{m.group('prefix')}***@{host_part}"
