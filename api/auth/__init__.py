"""Authentication modules."""
from api.auth.bearer_auth import SharedSecretAuth, require_secret, security, verify_secret

__all__ = [
    "SharedSecretAuth",
    "require_secret",
    "security",
    "verify_secret",
]
