from datetime import date, datetime, timedelta, timezone
from typing import Optional
import secrets
import string

INVITATION_CODE_LENGTH = 6
INVITATION_CODE_ALPHABET = string.ascii_uppercase + string.digits


def utcnow() -> datetime:
    """Timezone-aware current time in UTC; every stored timestamp uses this."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat a naive value read back from the database as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def current_week_start(today: Optional[date] = None) -> date:
    """Monday of the week containing `today` (UTC date by default).

    Personal and family tasks are both bucketed with this.
    """
    today = today or utcnow().date()
    return today - timedelta(days=today.weekday())


def generate_invitation_code() -> str:
    return "".join(secrets.choice(INVITATION_CODE_ALPHABET) for _ in range(INVITATION_CODE_LENGTH))


def normalize_invitation_code(code: str) -> str:
    return code.strip().upper()
