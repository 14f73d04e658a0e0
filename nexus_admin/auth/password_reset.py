"""Password reset lifecycle.

    NoTokenIssued -> TokenIssued -> Consumed | Expired | Superseded

- issue:     forgot-password for a known email stores (token, expiry) on the
             user, overwriting any previous pair (Superseded), then tries to
             deliver it. Delivery is best effort.
- check:     well-formed, exact match on a stored token, expiry > now. An
             expired match is cleared on the spot (lazy expiry; there is no
             background sweep).
- consume:   check, then overwrite the password and clear the token in one
             guarded update.

Callers of forgot-password never learn whether the email exists: the HTTP
layer answers generically and runs ``issue_token_in_background`` after the
response has been sent.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Optional

from nexus_admin.auth.delivery import EMAIL, WHATSAPP, ResetChannel
from nexus_admin.auth.password import hash_password
from nexus_admin.auth.tokens import (
    generate_reset_token,
    is_token_expired,
    is_well_formed,
    token_expiry,
    token_preview,
)
from nexus_admin.db.models import User, utcnow
from nexus_admin.errors import DeliveryError, TokenExpiredError, TokenInvalidError
from nexus_admin.log import get_logger
from nexus_admin.observability.metrics import metrics
from nexus_admin.users.repository import UserRepository

logger = get_logger(__name__)

GENERIC_MESSAGES = {
    EMAIL: "Se o email existir, você receberá instruções de recuperação.",
    WHATSAPP: "Se o número estiver cadastrado, você receberá instruções via WhatsApp.",
}


class ResetStatus(str, Enum):
    VALID = "valid"
    MALFORMED = "malformed"
    UNKNOWN = "unknown"
    EXPIRED = "expired"


@dataclass
class ResetCheck:
    status: ResetStatus
    user: Optional[User] = None

    @property
    def valid(self) -> bool:
        return self.status is ResetStatus.VALID


def generic_message(method: str) -> str:
    return GENERIC_MESSAGES.get(method, GENERIC_MESSAGES[EMAIL])


class PasswordResetService:
    def __init__(
        self,
        users: UserRepository,
        channels: Dict[str, ResetChannel],
        token_ttl_hours: float = 1.0,
        bcrypt_rounds: int = 10,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._users = users
        self._channels = channels
        self._token_ttl_hours = token_ttl_hours
        self._bcrypt_rounds = bcrypt_rounds
        self._clock = clock

    def available_methods(self) -> Dict[str, bool]:
        return {name: channel.configured for name, channel in self._channels.items()}

    # ── NoTokenIssued / TokenIssued -> TokenIssued ───────────────────

    def issue_token(self, email: str, method: str = EMAIL) -> Optional[str]:
        """Issue (or supersede) the reset token of *email* and try to deliver it.

        Returns the token, or None when no user has that email.
        """
        user = self._users.get_by_email(email)
        if user is None:
            metrics.password_reset_total.labels(stage="issue", outcome="unknown_email").inc()
            logger.debug("forgot-password for unknown email ignored")
            return None

        token = generate_reset_token()
        expiry = token_expiry(self._token_ttl_hours, now=self._clock())
        self._users.set_reset_token(user.email, token, expiry)
        metrics.password_reset_total.labels(stage="issue", outcome="issued").inc()
        logger.info("reset token issued user_id=%s token=%s", user.id, token_preview(token))

        self._deliver(user, token, method)
        return token

    def issue_token_in_background(self, email: str, method: str = EMAIL) -> None:
        """Entry point for the post-response task; nothing here can reach the caller."""
        try:
            self.issue_token(email, method)
        except Exception:
            logger.exception("forgot-password processing failed after response")

    def _deliver(self, user: User, token: str, method: str) -> None:
        channel = self._channels.get(method)
        if channel is None or not channel.configured:
            logger.warning("reset channel %s not configured; token for user_id=%s not sent", method, user.id)
            return
        recipient = user.celular if method == WHATSAPP else user.email
        try:
            channel.send_reset(recipient=recipient or "", token=token, name=user.name)
        except DeliveryError as e:
            metrics.password_reset_total.labels(stage="issue", outcome="delivery_failed").inc()
            logger.warning("reset delivery failed user_id=%s: %s", user.id, e)

    # ── checks ───────────────────────────────────────────────────────

    def check(self, token: Optional[str]) -> ResetCheck:
        if not is_well_formed(token):
            return ResetCheck(ResetStatus.MALFORMED)

        user = self._users.get_by_reset_token(token)
        if user is None or user.reset_token != token:
            return ResetCheck(ResetStatus.UNKNOWN)

        if is_token_expired(user.reset_token_expiry, now=self._clock()):
            self._users.clear_reset_token(user.id, token)
            logger.info("expired reset token cleared user_id=%s", user.id)
            return ResetCheck(ResetStatus.EXPIRED, user)

        return ResetCheck(ResetStatus.VALID, user)

    def validate(self, token: Optional[str]) -> bool:
        result = self.check(token)
        metrics.password_reset_total.labels(stage="validate", outcome=result.status.value).inc()
        return result.valid

    # ── TokenIssued -> Consumed ──────────────────────────────────────

    def consume(self, token: Optional[str], new_password: str) -> None:
        result = self.check(token)
        metrics.password_reset_total.labels(stage="consume", outcome=result.status.value).inc()
        if result.status is ResetStatus.MALFORMED:
            raise TokenInvalidError("Token inválido")
        if result.status is ResetStatus.UNKNOWN:
            raise TokenInvalidError("Token inválido ou expirado")
        if result.status is ResetStatus.EXPIRED:
            raise TokenExpiredError()

        hashed = hash_password(new_password, rounds=self._bcrypt_rounds)
        if not self._users.reset_password(result.user.id, token, hashed):
            # Consumed or superseded between the check and the write.
            raise TokenInvalidError("Token inválido ou expirado")
        logger.info("password reset completed user_id=%s", result.user.id)
