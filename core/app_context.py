import logging
from dataclasses import dataclass, field
from typing import Optional, Dict

from redis import Redis
from sqlalchemy.orm import sessionmaker

from core.config_loader import AppConfig, RedisConfig
from database.database import create_db_engine, create_session_factory
from database.repository import MarketplaceRepository
from core.ranking import RankingService
from core.matcher import MatchFinder
from notification.channels import NotificationChannel
from notification.dispatcher import NotificationDispatcher, build_channels
from notification.service import NotificationService

logger = logging.getLogger(__name__)


def connect_redis(redis_config: Optional[RedisConfig]) -> Optional[Redis]:
    """Connect and ping Redis; None when unset or unreachable."""
    if not redis_config or not redis_config.url:
        logger.info("Redis not configured. Realtime events and idempotency cache disabled.")
        return None
    try:
        client = Redis.from_url(
            redis_config.url,
            socket_timeout=redis_config.socket_timeout_seconds,
            socket_connect_timeout=redis_config.socket_timeout_seconds
        )
        # Validate connection with ping before using
        client.ping()
        logger.info("Connected to Redis")
        return client
    except Exception as e:
        logger.error(f"Redis connection failed: {e}. Continuing without Redis.")
        return None


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    Holds the long-lived pieces (config, session factory, Redis client,
    channels). Services that need a database session are built per unit of
    work with the ``*_for`` helpers, e.g. ``ctx.match_finder_for(repo)``
    inside ``marketplace_uow(ctx.session_factory)``.
    """
    config: AppConfig
    redis_client: Optional[Redis] = None
    channels: Dict[str, NotificationChannel] = field(default_factory=dict)
    session_factory: Optional[sessionmaker] = None

    @classmethod
    def build(
        cls,
        config: AppConfig,
        redis_client: Optional[Redis] = None,
        session_factory: Optional[sessionmaker] = None
    ) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration
            redis_client: Pre-built client (tests); connects from config when omitted
            session_factory: Pre-built factory (tests); built from database.url when omitted

        Returns:
            Fully wired AppContext instance (no DB session attached)
        """
        if session_factory is None:
            session_factory = create_session_factory(create_db_engine(config.database.url))
        if redis_client is None:
            redis_client = connect_redis(config.redis)
        channels = build_channels(config.notifications, redis_client)
        return cls(
            config=config,
            redis_client=redis_client,
            channels=channels,
            session_factory=session_factory
        )

    def ranking_service_for(self, repo: MarketplaceRepository) -> RankingService:
        return RankingService(repo, self.config.ranking)

    def match_finder_for(self, repo: MarketplaceRepository) -> MatchFinder:
        return MatchFinder(repo, self.config.matching)

    def notification_service_for(self, repo: MarketplaceRepository) -> NotificationService:
        return NotificationService(repo, self.config.notifications, self.redis_client)

    def dispatcher_for(self, repo: MarketplaceRepository) -> NotificationDispatcher:
        return NotificationDispatcher(
            self.notification_service_for(repo),
            channels=self.channels,
            config=self.config.notifications
        )
