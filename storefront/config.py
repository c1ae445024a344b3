from pydantic_settings import BaseSettings
from typing import List, Optional
from urllib.parse import quote_plus

class Settings(BaseSettings):
    ENV: str = "local"

    # Set DATABASE_URL directly, or let it be built from the postgres_* parts
    DATABASE_URL: Optional[str] = None
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "storefront"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    admin_password: Optional[str] = None
    admin_token_expire_minutes: int = 60 * 24

    base_url: Optional[str] = None
    store_name: str = "GreyExim"
    default_currency: str = "INR"

    payment_provider: str = "stripe"
    payment_timeout_seconds: float = 10.0

    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    # 0 disables the replay window check on webhook timestamps
    stripe_webhook_tolerance_seconds: int = 0

    razorpay_key_id: Optional[str] = None
    razorpay_key_secret: Optional[str] = None
    razorpay_webhook_secret: Optional[str] = None

    enforce_status_transitions: bool = False
    express_shipping_fee: float = 199.0
    stuck_session_minutes: int = 15

    log_level: str = "INFO"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @property
    def database_url(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL

        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
