import logging
import argparse
import json
import sys

from core.config_loader import load_config
from core.app_context import AppContext
from core.exceptions import MarketplaceError
from core.ranking import recalculate_all_rankings, get_ranking_tier
from database.database import create_db_engine, create_session_factory
from database.init_db import init_db
from database.uow import marketplace_uow
from notification.service import NotificationService
from pipeline.runner import dispatch_existing_request

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def cmd_init_db(args, config) -> int:
    init_db(create_db_engine(config.database.url))
    return 0


def cmd_rescore(args, config) -> int:
    ctx = AppContext.build(config)
    with marketplace_uow(ctx.session_factory) as repo:
        score = ctx.ranking_service_for(repo).score(args.professional_id)
    logger.info(f"Professional {args.professional_id}: score {score} ({get_ranking_tier(score).name})")
    print(json.dumps({'professional_id': args.professional_id, 'score': score}))
    return 0


def cmd_rescore_all(args, config) -> int:
    if args.workers:
        config.ranking.max_workers = args.workers
    session_factory = create_session_factory(create_db_engine(config.database.url))
    completed = recalculate_all_rankings(session_factory, config=config.ranking)
    print(json.dumps({'completed': completed}))
    return 0


def cmd_dispatch(args, config) -> int:
    ctx = AppContext.build(config)
    report = dispatch_existing_request(ctx, args.request_id)
    print(json.dumps({
        'request_id': report.request_id,
        'processed': report.processed,
        'persisted': report.persisted,
        'suppressed': report.suppressed,
        'skipped': report.skipped,
    }))
    return 0


def cmd_cleanup_notifications(args, config) -> int:
    session_factory = create_session_factory(create_db_engine(config.database.url))
    with marketplace_uow(session_factory) as repo:
        deleted = NotificationService(repo, config.notifications).cleanup_old_notifications(args.days_old)
    print(json.dumps({'deleted': deleted}))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Marketplace matching, ranking and notification core")
    parser.add_argument('--config', type=str, default='config.yaml', help='Path to config.yaml')
    subparsers = parser.add_subparsers(dest='command', required=True)

    init_parser = subparsers.add_parser('init-db', help='Create tables (retries while the DB starts)')
    init_parser.set_defaults(func=cmd_init_db)

    rescore_parser = subparsers.add_parser('rescore', help='Recompute one professional\'s ranking score')
    rescore_parser.add_argument('professional_id', type=int)
    rescore_parser.set_defaults(func=cmd_rescore)

    rescore_all_parser = subparsers.add_parser('rescore-all', help='Recompute every active professional')
    rescore_all_parser.add_argument('--workers', type=int, default=None, help='Override ranking.max_workers')
    rescore_all_parser.set_defaults(func=cmd_rescore_all)

    dispatch_parser = subparsers.add_parser('dispatch', help='Match and notify for an existing request')
    dispatch_parser.add_argument('request_id', type=int)
    dispatch_parser.set_defaults(func=cmd_dispatch)

    cleanup_parser = subparsers.add_parser('cleanup-notifications', help='Delete old read notifications')
    cleanup_parser.add_argument('--days-old', type=int, default=None)
    cleanup_parser.set_defaults(func=cmd_cleanup_notifications)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    logger.info(f"Running command: {args.command}")

    try:
        return args.func(args, config)
    except MarketplaceError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
