"""
Application error hierarchy.

Every error that may reach a client carries its HTTP status and the message
rendered to the caller. ``DeliveryError`` is internal only: callers catch and
log it, it is never rendered.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class AppError(Exception):
    status_code: int = 500
    default_message: str = "Erro interno do servidor"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(AppError):
    status_code = 400
    default_message = "Dados inválidos"

    def __init__(self, message: Optional[str] = None, fields: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.fields = fields or []

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        if self.fields:
            out["fields"] = self.fields
        return out


class AuthenticationError(AppError):
    """Bad credentials or missing session. The message never says which."""

    status_code = 401
    default_message = "Não autorizado"


class ConflictError(AppError):
    status_code = 409
    default_message = "Registro duplicado"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Usuário não encontrado"


class TokenInvalidError(AppError):
    status_code = 400
    default_message = "Token inválido ou expirado"


class TokenExpiredError(TokenInvalidError):
    default_message = "Token expirado"


class DeliveryError(Exception):
    """Email, WhatsApp or webhook delivery failed."""

    def __init__(self, channel: str, message: str):
        self.channel = channel
        super().__init__(f"{channel}: {message}")
