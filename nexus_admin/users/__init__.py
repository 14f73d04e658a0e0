"""User persistence and management."""
from nexus_admin.users.repository import SqlUserRepository, UserRepository
from nexus_admin.users.service import UserService

__all__ = ["SqlUserRepository", "UserRepository", "UserService"]
