# Auth: password hashing, reset tokens, sessions, password reset lifecycle
from nexus_admin.auth.password import hash_password, verify_password
from nexus_admin.auth.tokens import (
    generate_reset_token,
    token_expiry,
    is_token_expired,
    is_well_formed,
)
from nexus_admin.auth.session import SessionManager

__all__ = [
    "hash_password",
    "verify_password",
    "generate_reset_token",
    "token_expiry",
    "is_token_expired",
    "is_well_formed",
    "SessionManager",
]
