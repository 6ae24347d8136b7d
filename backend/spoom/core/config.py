# spoom/core/config.py
import os
from urllib.parse import quote_plus

from dotenv import load_dotenv


def str_to_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def merge_unique(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for v in items:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


SUPPORTED_IDENTITY_PROVIDERS = ("cognito", "supabase")


class Settings:
    def __init__(self) -> None:
        self.ENV = os.getenv("ENV", "dev").strip().lower()  # dev | prod
        if self.ENV != "prod":
            # Prod reads only the service environment, never a local .env file.
            load_dotenv()

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()

        # ----------------------------
        # Database
        # ----------------------------
        self.DATABASE_URL = os.getenv("DATABASE_URL", "").strip()
        self.DB_HOST = os.getenv("DB_HOST", "")
        self.DB_PORT = os.getenv("DB_PORT", "5432")
        self.DB_NAME = os.getenv("DB_NAME", "")
        self.DB_APP_USER = os.getenv("DB_APP_USER", "")
        self.DB_APP_PASSWORD = os.getenv("DB_APP_PASSWORD", "")
        self.DB_MIGRATOR_USER = os.getenv("DB_MIGRATOR_USER", "")
        self.DB_MIGRATOR_PASSWORD = os.getenv("DB_MIGRATOR_PASSWORD", "")
        self.DB_SSLMODE = os.getenv("DB_SSLMODE", "require").strip().lower()

        # ----------------------------
        # CORS
        # ----------------------------
        dev_defaults = [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]

        cors_from_env = parse_csv(os.getenv("CORS_ORIGINS"))
        if self.ENV == "prod":
            self.CORS_ORIGINS = merge_unique(cors_from_env)
        else:
            self.CORS_ORIGINS = merge_unique(cors_from_env + dev_defaults)

        # ----------------------------
        # Identity provider
        # ----------------------------
        self.IDENTITY_PROVIDER = os.getenv("IDENTITY_PROVIDER", "cognito").strip().lower()

        self.COGNITO_REGION = os.getenv("COGNITO_REGION", "") or os.getenv("AWS_REGION", "us-east-1")
        self.COGNITO_USER_POOL_ID = os.getenv("COGNITO_USER_POOL_ID", "")
        self.COGNITO_APP_CLIENT_ID = os.getenv("COGNITO_APP_CLIENT_ID", "")
        self.COGNITO_APP_CLIENT_SECRET = os.getenv("COGNITO_APP_CLIENT_SECRET", "")
        # Pools that alias email forbid it as the username, so sign-up uses <local>_<millis>.
        self.COGNITO_DERIVED_USERNAMES = str_to_bool(os.getenv("COGNITO_DERIVED_USERNAMES"), default=True)

        self.SUPABASE_URL = os.getenv("SUPABASE_URL", "").strip().rstrip("/")
        self.SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")

        if self.ENV == "prod":
            self.PASSWORD_RESET_REDIRECT_URL = os.getenv("PASSWORD_RESET_REDIRECT_URL", "").strip()
        else:
            self.PASSWORD_RESET_REDIRECT_URL = os.getenv(
                "PASSWORD_RESET_REDIRECT_URL", "http://localhost:3000/reset-password"
            ).strip()

        # ----------------------------
        # Session cookies
        # ----------------------------
        self.AUTH_COOKIES_ENABLED = str_to_bool(os.getenv("AUTH_COOKIES_ENABLED"), default=True)
        default_samesite = "none" if self.ENV == "prod" else "lax"
        self.AUTH_COOKIE_SAMESITE = os.getenv("AUTH_COOKIE_SAMESITE", default_samesite).strip().lower()
        self.AUTH_COOKIE_DOMAIN = os.getenv("AUTH_COOKIE_DOMAIN", "") or None
        self.REFRESH_COOKIE_MAX_AGE_DAYS = int(os.getenv("REFRESH_COOKIE_MAX_AGE_DAYS", "30"))

        # ----------------------------
        # Username recovery
        # ----------------------------
        self.USERNAME_RECOVERY_WINDOW_HOURS = int(os.getenv("USERNAME_RECOVERY_WINDOW_HOURS", "24"))
        self.USERNAME_RECOVERY_STEP_SECONDS = int(os.getenv("USERNAME_RECOVERY_STEP_SECONDS", "60"))

        self._validate_prod()

    def _validate_prod(self) -> None:
        if self.ENV != "prod":
            return

        missing: list[str] = []

        if not self.DATABASE_URL:
            if not self.DB_HOST:
                missing.append("DB_HOST")
            if not self.DB_NAME:
                missing.append("DB_NAME")
            if not self.DB_APP_USER:
                missing.append("DB_APP_USER")
            if not self.DB_APP_PASSWORD:
                missing.append("DB_APP_PASSWORD")
            if self.DB_SSLMODE != "require":
                raise RuntimeError("DB_SSLMODE must be 'require' in prod")

        if self.IDENTITY_PROVIDER not in SUPPORTED_IDENTITY_PROVIDERS:
            raise RuntimeError(f"Unsupported IDENTITY_PROVIDER: {self.IDENTITY_PROVIDER}")

        if self.IDENTITY_PROVIDER == "cognito":
            if not self.COGNITO_USER_POOL_ID:
                missing.append("COGNITO_USER_POOL_ID")
            if not self.COGNITO_APP_CLIENT_ID:
                missing.append("COGNITO_APP_CLIENT_ID")
        else:
            if not self.SUPABASE_URL:
                missing.append("SUPABASE_URL")
            if not self.SUPABASE_KEY:
                missing.append("SUPABASE_KEY")

        if not self.CORS_ORIGINS:
            missing.append("CORS_ORIGINS")

        cors_joined = ",".join(self.CORS_ORIGINS)
        if "localhost" in cors_joined or "127.0.0.1" in cors_joined:
            raise RuntimeError("CORS_ORIGINS contains localhost/dev origins in prod")

        if missing:
            raise RuntimeError(f"Missing required prod env vars: {', '.join(missing)}")

    @property
    def is_prod(self) -> bool:
        return self.ENV == "prod"

    @property
    def uses_client_secret(self) -> bool:
        return bool(self.COGNITO_APP_CLIENT_SECRET)

    def _build_database_url(self, user: str, password: str) -> str:
        encoded_password = quote_plus(password)
        return (
            f"postgresql+psycopg2://{user}:{encoded_password}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            f"?sslmode={self.DB_SSLMODE}"
        )

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return self._build_database_url(self.DB_APP_USER, self.DB_APP_PASSWORD)

    @property
    def migrations_database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return self._build_database_url(self.DB_MIGRATOR_USER, self.DB_MIGRATOR_PASSWORD)


settings = Settings()
