import hmac

from app.config import Settings


def build_bearer(secret: str) -> str:
    """Build the Authorization header value expected for a shared secret."""
    return f"Bearer {secret}"


def verify_cron_authorization(authorization: str | None, settings: Settings) -> bool:
    """Check the run-jobs trigger's Authorization header.

    Only enforced in production when a cron secret is configured, so local
    and test invocations can hit the endpoint without credentials.
    """
    if not settings.is_production or not settings.cron_secret:
        return True
    if not authorization:
        return False
    expected = build_bearer(settings.cron_secret)
    return hmac.compare_digest(expected.encode(), authorization.encode())
