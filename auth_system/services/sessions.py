"""Per-user refresh-token registry: add, remove, remove-all, membership, rotation."""

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from auth_system.models import RefreshToken

logger = logging.getLogger(__name__)


class RefreshTokenRegistry:
    """
    The set of refresh tokens currently valid for one user.

    A refresh token is honoured only if its signature checks out AND it is
    still listed here, so removing a row revokes an unexpired token
    server-side. Every mutation commits immediately.
    """

    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    def _query(self):
        return self.session.query(RefreshToken).filter(RefreshToken.user_id == self.user_id)

    def tokens(self) -> list[str]:
        """Registered token strings, oldest first."""
        rows = self._query().order_by(RefreshToken.issued_at, RefreshToken.id).all()
        return [row.token for row in rows]

    def contains(self, token: str) -> bool:
        return self.session.query(
            self._query().filter(RefreshToken.token == token).exists()
        ).scalar()

    def add(self, token: str, expires_at: datetime) -> None:
        """Append a token to the registry and commit."""
        self.session.add(
            RefreshToken(
                user_id=self.user_id,
                token=token,
                issued_at=datetime.now(UTC),
                expires_at=expires_at,
            )
        )
        self.session.commit()

    def remove(self, token: str) -> bool:
        """Remove an exact token match. Absent tokens are not an error; returns False."""
        deleted = self._query().filter(RefreshToken.token == token).delete(synchronize_session=False)
        self.session.commit()
        return deleted > 0

    def remove_all(self) -> int:
        """Drop every refresh token of this user; returns how many were removed."""
        deleted = self._query().delete(synchronize_session=False)
        self.session.commit()
        return deleted

    def rotate(self, old_token: str, new_token: str, expires_at: datetime) -> bool:
        """
        Replace old_token with new_token in one transaction.

        The old row is removed with a conditional DELETE and the affected row
        count decides the outcome: when two requests race with the same
        token, only the one whose DELETE hits the row gets to add a
        replacement. Returns False (and adds nothing) if old_token was already
        gone.
        """
        deleted = (
            self._query()
            .filter(RefreshToken.token == old_token)
            .delete(synchronize_session=False)
        )
        if deleted != 1:
            self.session.rollback()
            logger.warning(
                "Refresh token rotation lost: token no longer registered",
                extra={"user_id": self.user_id},
            )
            return False
        self.session.add(
            RefreshToken(
                user_id=self.user_id,
                token=new_token,
                issued_at=datetime.now(UTC),
                expires_at=expires_at,
            )
        )
        self.session.commit()
        return True


def prune_expired_refresh_tokens(session: Session, now: datetime | None = None) -> int:
    """
    Delete refresh tokens whose expiry has passed. Idempotent; returns rows deleted.

    Expired tokens already fail signature verification, so this only keeps
    the registry from growing without bound.
    """
    cutoff = now or datetime.now(UTC)
    deleted_count = (
        session.query(RefreshToken)
        .filter(RefreshToken.expires_at < cutoff)
        .delete(synchronize_session=False)
    )
    session.commit()
    if deleted_count > 0:
        logger.info(
            "Pruned expired refresh tokens: cutoff=%s, deleted=%s",
            cutoff.isoformat(),
            deleted_count,
        )
    return deleted_count
