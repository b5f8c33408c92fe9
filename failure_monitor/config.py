from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""

    # Gmail alert transport (OAuth2 refresh-token flow)
    gmail_client_id: str = ""
    gmail_client_secret: str = ""
    gmail_refresh_token: str = ""
    alert_email: str = "admin@example.com"

    # Airtable
    airtable_api_key: str = ""
    airtable_base_id: str = "appUNIsu8KgvOlmi0"
    airtable_table_name: str = "Failed Payments"

    # Outbound HTTP calls to Gmail / Airtable
    http_timeout_seconds: float = 10.0

    # Observability
    otlp_endpoint: str = ""

    model_config = {"env_file": ".env"}


settings = Settings()


def get_settings() -> Settings:
    return settings
