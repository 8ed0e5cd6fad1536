from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

# -----------------------
# Settings and constants
# -----------------------

class Settings(BaseSettings):

    # Env var names are the ones the Cloud Functions deployment already uses
    # (GCP_PROJECT, TOPIC_NAME, SNS_ARN)

    # Destination (Pub/Sub)
    gcp_project: str = ""
    topic_name: str = ""

    # Source (SNS); empty means every callback is rejected
    sns_arn: str = ""

    # HTTP surface
    service_name: str = "sns-relay"
    endpoint_path: str = "/"
    max_body_bytes: int = 10 * 1024 * 1024
    disconnect_poll_s: float = 0.5

    # Outbound
    confirm_timeout_s: float = 10.0
    publish_timeout_s: Optional[float] = None

    # Observability
    tracing_enabled: bool = True
    use_cloud_trace: bool = False
    environment: str = "dev"

    # Global settings configuration (Pydantic v2); frozen after startup
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)


settings = Settings() # type: ignore
