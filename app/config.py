from typing import List, Optional
from pydantic_settings import BaseSettings
from urllib.parse import quote_plus

class Settings(BaseSettings):
    ENV: str = "local"
    log_level: str = "INFO"
    run_background_jobs: bool = True

    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "ersa_training"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"
    sqlalchemy_database_url: Optional[str] = None


    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    jwt_issuer: str = "ersa-training"
    jwt_audience: str = "ersa-training-clients"


    google_client_id: Optional[str] = None

    # public URL of this API, used for gateway callbacks and secure links
    app_base_url: str = "http://localhost:8000"
    frontend_base_url: str = "https://ersa-training.com"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "https://ersa-training.com",
    ]

    # 0 = all gateways, 1 = HyperPay, 2 = ClickPay, 3 = Tamara
    payment_gateway_method: int = 0
    default_gateway: str = "ClickPay"
    payment_expiry_hours: int = 24
    # lets customers confirm their own payment without asking the gateway
    allow_manual_payment_completion: bool = False

    clickpay_api_url: str = "https://secure.clickpay.com.sa"
    clickpay_profile_id: str = ""
    clickpay_server_key: str = ""
    clickpay_currency: str = "SAR"
    clickpay_merchant_country_code: str = "SA"
    clickpay_webhook_secret: Optional[str] = None

    hyperpay_api_url: str = "https://eu-test.oppwa.com"
    hyperpay_entity_id: str = ""
    hyperpay_access_token: str = ""
    hyperpay_checkout_url: str = "https://eu-test.oppwa.com/v1/paymentWidgets.js?checkoutId="
    hyperpay_webhook_secret: Optional[str] = None

    tamara_api_base_url: Optional[str] = None
    tamara_api_token: Optional[str] = None
    tamara_notification_token: Optional[str] = None

    sendgrid_api_key: str = ""
    sendgrid_from_email: str = "no-reply@ersa-training.com"
    sendgrid_from_name: str = "Ersa Training"
    sendgrid_webhook_key: Optional[str] = None
    contact_inbox_email: str = "info@ersa-training.com"

    storage_endpoint_url: Optional[str] = None
    storage_access_key_id: Optional[str] = None
    storage_secret_access_key: Optional[str] = None
    storage_bucket_name: str = "ersa-training"
    storage_region: str = "auto"

    @property
    def database_url(self):
        if self.sqlalchemy_database_url:
            return self.sqlalchemy_database_url
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
