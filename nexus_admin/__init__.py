"""Nexus Admin backend: session auth, user management, password reset, webhooks."""

__version__ = "1.0.0"
