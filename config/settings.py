"""
Unified configuration module.

- Config file: config/app_config.json (tunable, non-secret parameters)
- Local override: config/app_config.local.json (private, not committed)
- Environment variables override sensitive values (secrets, URLs, API keys)

`settings` is a process-wide instance for scripts. The application itself is
built from an explicitly constructed ``Settings`` passed to ``create_app``.
"""

import os
import json
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv

load_dotenv()

_CONFIG_PATH = Path(__file__).parent / "app_config.json"
_LOCAL_CONFIG_PATH = Path(__file__).parent / "app_config.local.json"

DEFAULT_SESSION_SECRET = "nexus-secret-key-change-in-production"


def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_raw_config(
    config_path: Path = _CONFIG_PATH,
    local_path: Path = _LOCAL_CONFIG_PATH,
) -> Dict[str, Any]:
    raw = _load_json(config_path)
    if local_path.exists():
        raw = _deep_merge(raw, _load_json(local_path))
    return raw


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ApiSettings:
    """HTTP server"""
    host: str = "127.0.0.1"
    port: int = 5000
    cors_origins: List[str] = field(default_factory=list)


@dataclass
class DatabaseSettings:
    url: str = "sqlite:///data/nexus.db"
    echo: bool = False


@dataclass
class AuthSettings:
    """Sessions, hashing and reset tokens (secrets belong in .local.json or env)"""
    session_secret: str = DEFAULT_SESSION_SECRET
    session_ttl_hours: float = 24.0 * 7
    cookie_name: str = "nexus.sid"
    cookie_secure: bool = False
    bcrypt_rounds: int = 10
    reset_token_ttl_hours: float = 1.0
    admin_email: str = "admin@example.com"
    admin_default_password: str = "admin123"
    admin_name: str = "Administrador"


@dataclass
class WebhookSettings:
    """Global outbound webhook; empty url disables dispatch"""
    url: str = ""
    api_key: str = ""
    timeout_seconds: float = 10.0
    shutdown_grace_seconds: float = 5.0

    @property
    def enabled(self) -> bool:
        return bool(self.url)


@dataclass
class MailSettings:
    """SMTP delivery of password reset links"""
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_starttls: bool = True
    from_address: str = ""
    app_base_url: str = "http://localhost:5000"

    @property
    def configured(self) -> bool:
        return bool(self.smtp_host and self.from_address)


@dataclass
class WhatsAppSettings:
    """HTTP endpoint of the WhatsApp gateway used as an alternate reset channel"""
    endpoint_url: str = ""
    api_key: str = ""
    timeout_seconds: float = 10.0

    @property
    def configured(self) -> bool:
        return bool(self.endpoint_url)


@dataclass
class LoggingSettings:
    level: str = "INFO"
    log_dir: Optional[str] = None
    console_output: bool = True
    max_size_mb: int = 100
    max_age_days: int = 30
    min_keep_mb: int = 20

    def as_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "log_dir": self.log_dir,
            "console_output": self.console_output,
            "max_size_mb": self.max_size_mb,
            "max_age_days": self.max_age_days,
            "min_keep_mb": self.min_keep_mb,
        }


@dataclass
class PathSettings:
    base: Path = field(default_factory=lambda: Path(__file__).parent.parent)

    @property
    def data(self) -> Path:
        return self.base / "data"

    @property
    def logs(self) -> Path:
        return self.base / "logs"

    def ensure_dirs(self):
        for p in [self.data, self.logs]:
            p.mkdir(parents=True, exist_ok=True)


class Settings:
    def __init__(self, raw: Optional[Dict[str, Any]] = None):
        raw = load_raw_config() if raw is None else raw
        self.env = os.getenv("APP_ENV", raw.get("env", "dev"))

        a = raw.get("api") or {}
        self.api = ApiSettings(
            host=str(os.getenv("API_HOST", a.get("host", "127.0.0.1"))),
            port=int(os.getenv("PORT", a.get("port", 5000))),
            cors_origins=list(a.get("cors_origins") or []),
        )

        db = raw.get("database") or {}
        self.database = DatabaseSettings(
            url=(
                os.getenv("NEXUS_DATABASE_URL")
                or os.getenv("DATABASE_URL")
                or db.get("url")
                or "sqlite:///data/nexus.db"
            ),
            echo=bool(db.get("echo", False)),
        )

        au = raw.get("auth") or {}
        self.auth = AuthSettings(
            session_secret=str(os.getenv("SESSION_SECRET") or au.get("session_secret") or DEFAULT_SESSION_SECRET),
            session_ttl_hours=float(au.get("session_ttl_hours", 24 * 7)),
            cookie_name=str(au.get("cookie_name", "nexus.sid")),
            cookie_secure=_env_bool("COOKIE_SECURE", bool(au.get("cookie_secure", self.env == "prod"))),
            bcrypt_rounds=int(au.get("bcrypt_rounds", 10)),
            reset_token_ttl_hours=float(au.get("reset_token_ttl_hours", 1)),
            admin_email=str(os.getenv("ADMIN_EMAIL") or au.get("admin_email", "admin@example.com")),
            admin_default_password=str(os.getenv("ADMIN_PASSWORD") or au.get("admin_default_password", "admin123")),
            admin_name=str(au.get("admin_name", "Administrador")),
        )

        wh = raw.get("webhook") or {}
        self.webhook = WebhookSettings(
            url=(os.getenv("GLOBAL_WEBHOOK_URL") or wh.get("url") or "").strip(),
            api_key=(os.getenv("GLOBAL_API_KEY") or wh.get("api_key") or "").strip(),
            timeout_seconds=float(wh.get("timeout_seconds", 10)),
            shutdown_grace_seconds=float(wh.get("shutdown_grace_seconds", 5)),
        )

        m = raw.get("mail") or {}
        self.mail = MailSettings(
            smtp_host=(os.getenv("SMTP_HOST") or m.get("smtp_host") or "").strip(),
            smtp_port=int(os.getenv("SMTP_PORT") or m.get("smtp_port", 587)),
            smtp_user=(os.getenv("SMTP_USER") or m.get("smtp_user") or "").strip(),
            smtp_password=os.getenv("SMTP_PASS") or m.get("smtp_password") or "",
            smtp_starttls=_env_bool("SMTP_STARTTLS", bool(m.get("smtp_starttls", True))),
            from_address=(os.getenv("SMTP_FROM") or m.get("from_address") or "").strip(),
            app_base_url=(os.getenv("APP_BASE_URL") or m.get("app_base_url") or "http://localhost:5000").rstrip("/"),
        )

        w = raw.get("whatsapp") or {}
        self.whatsapp = WhatsAppSettings(
            endpoint_url=(os.getenv("WHATSAPP_ENDPOINT") or w.get("endpoint_url") or "").strip(),
            api_key=(os.getenv("WHATSAPP_API_KEY") or w.get("api_key") or "").strip(),
            timeout_seconds=float(w.get("timeout_seconds", 10)),
        )

        lg = raw.get("logging") or {}
        self.logging = LoggingSettings(
            level=str(os.getenv("LOG_LEVEL") or lg.get("level", "INFO")),
            log_dir=lg.get("log_dir"),
            console_output=bool(lg.get("console_output", True)),
            max_size_mb=int(lg.get("max_size_mb", 100)),
            max_age_days=int(lg.get("max_age_days", 30)),
            min_keep_mb=int(lg.get("min_keep_mb", 20)),
        )

        self.path = PathSettings()

    @property
    def is_prod(self) -> bool:
        return self.env == "prod"

    def print_info(self):
        print(f"""
========================================
  Nexus Admin
========================================
  Env: {self.env}
  Database: {self.database.url}
  Webhook: {"on" if self.webhook.enabled else "off"}
  SMTP: {"on" if self.mail.configured else "off"}
  WhatsApp: {"on" if self.whatsapp.configured else "off"}
========================================
        """)


# Process-wide instance for scripts
settings = Settings()
