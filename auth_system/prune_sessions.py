"""
CLI entrypoint for pruning expired refresh tokens. Run from cron, e.g.:

  python -m auth_system.prune_sessions

Or hourly: 0 * * * * cd /path/to/auth-system && .venv/bin/python -m auth_system.prune_sessions
"""

import logging
import sys

from auth_system.core.config import get_settings
from auth_system.core.database import SessionLocal
from auth_system.services.sessions import prune_expired_refresh_tokens

logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Delete refresh tokens past their expiry."""
    db = SessionLocal()
    try:
        deleted = prune_expired_refresh_tokens(db)
        logger.info("Session pruning completed: tokens_deleted=%s", deleted)
        return 0
    except Exception as e:
        logger.exception("Session pruning failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
