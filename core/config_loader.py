import yaml
import os
from typing import Optional, Dict
from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    url: str


class RedisConfig(BaseModel):
    url: Optional[str] = None  # None = Redis-backed features disabled
    socket_timeout_seconds: float = 2.0


class RankingWeights(BaseModel):
    """Component weights for the persisted ranking score (sum to 1.0)."""
    reviews: float = 0.40
    subscription: float = 0.20
    verification: float = 0.15
    bookings: float = 0.10
    profile: float = 0.10
    experience: float = 0.05


class RankingConfig(BaseModel):
    """
    Configuration for the RankingService.

    Controls the component weights, the bonus multipliers and the bulk
    recompute sweep.
    """
    weights: RankingWeights = Field(default_factory=RankingWeights)

    # Subscription component
    subscription_scores: Dict[str, float] = Field(
        default_factory=lambda: {'premium': 100.0, 'basic': 60.0, 'free': 20.0}
    )
    expired_subscription_penalty: float = 30.0
    subscription_floor: float = 20.0

    # Booking component
    points_per_completed_booking: float = 2.0
    cancellation_rate_threshold: float = 0.10

    # Experience component
    points_per_year_experience: float = 10.0

    # Bonus multiplier
    verified_bonus: float = 0.10
    premium_bonus: float = 0.05
    recent_activity_bonus: float = 0.05
    recent_activity_days: int = 30

    # Bulk recompute
    max_workers: int = 4


class MatchingConfig(BaseModel):
    """
    Configuration for the MatchFinder.

    Priority weights are request-time weights, distinct from the ranking
    weights above.
    """
    default_notification_radius_km: float = 10.0
    # Quiet hours are stored as wall-clock "HH:MM" in this timezone
    timezone: str = "America/Argentina/Buenos_Aires"

    rating_weight: float = 40.0
    subscription_priority: Dict[str, float] = Field(
        default_factory=lambda: {'premium': 30.0, 'basic': 20.0, 'free': 5.0}
    )
    volume_weight: float = 20.0
    volume_reviews_for_max: int = 10
    urgency_priority: Dict[str, float] = Field(
        default_factory=lambda: {'emergency': 10.0, 'high': 7.0, 'medium': 5.0, 'low': 3.0}
    )
    default_urgency_priority: float = 5.0


class SmsGatewayConfig(BaseModel):
    url: Optional[str] = None
    api_key: Optional[str] = None
    sender: str = "Fixia"


class NotificationConfig(BaseModel):
    """
    Configuration for notifications.

    Controls deduplication and the delivery channels used when a new
    service request is broadcast.
    """
    dedup_window_minutes: int = 5
    use_idempotency_cache: bool = True  # Redis SET NX guard, needs redis.url

    realtime_enabled: bool = True
    email_enabled: bool = True
    sms_enabled: bool = True
    dry_run: bool = False  # Log instead of sending email/SMS

    realtime_event_name: str = "new_service_request"
    currency: str = "ARS"
    from_email: str = "noreply@fixia.app"
    sms_gateway: SmsGatewayConfig = Field(default_factory=SmsGatewayConfig)

    cleanup_days_old: int = 30
    recent_stats_days: int = 7


class WebConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080


class AppConfig(BaseModel):
    database: DatabaseConfig
    redis: RedisConfig = Field(default_factory=RedisConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    web: WebConfig = Field(default_factory=WebConfig)


def load_config(config_path: str = "config.yaml") -> AppConfig:
    # If not found at relative path (e.g. running from root), try absolute or adjusted path
    if not os.path.exists(config_path):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(base_dir, "..", "config.yaml")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    # Allow env var override for DB URL
    env_db_url = os.environ.get("DATABASE_URL")
    if env_db_url:
        if 'database' not in data or data['database'] is None:
            data['database'] = {}
        data['database']['url'] = env_db_url

    # Allow env var override for Redis URL
    env_redis_url = os.environ.get("REDIS_URL")
    if env_redis_url:
        if 'redis' not in data or data['redis'] is None:
            data['redis'] = {}
        data['redis']['url'] = env_redis_url

    # Allow env var override for SMS gateway credentials
    env_sms_key = os.environ.get("SMS_GATEWAY_API_KEY")
    if env_sms_key:
        if 'notifications' not in data or data['notifications'] is None:
            data['notifications'] = {}
        notifications = data['notifications']
        if 'sms_gateway' not in notifications or notifications['sms_gateway'] is None:
            notifications['sms_gateway'] = {}
        notifications['sms_gateway']['api_key'] = env_sms_key

    return AppConfig(**data)
