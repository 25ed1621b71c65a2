import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

# Redis Connection

REDIS_URL               = "redis://localhost:6379/0"
REDIS_SOCKET_TIMEOUT    = 5          # seconds

# Key Namespace Prefixes

SECRET_KEY_PREFIX       = "ess:v1:secret"       # ess:v1:secret:{secret_id}
RATE_LIMIT_KEY_PREFIX   = "ess:v1:rl"           # ess:v1:rl:{window}:{fingerprint}:{window_index}

# Payload / Identifier Limits

MAX_PAYLOAD_SIZE        = 10 * 1024 * 1024      # UTF-16 code units, as measured by the browser client
ID_LENGTH               = 16
MAX_ID_LENGTH           = 32
ID_ALPHABET             = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
ID_MAX_ATTEMPTS         = 3

# Lifetimes (seconds)

MIN_TTL                 = 60                    # backend rejects anything shorter
DEFAULT_TTL             = 86_400
READ_ONCE_TTL           = 86_400

TTL_MAP = {
    "5min":  5 * 60,
    "30min": 30 * 60,
    "1hour": 60 * 60,
    "6hour": 6 * 60 * 60,
    "1day":  24 * 60 * 60,
}

# Rate Limits

SHORT_WINDOW_LIMIT      = 20
SHORT_WINDOW_SECONDS    = 30
LONG_WINDOW_LIMIT       = 500
LONG_WINDOW_SECONDS     = 86_400

# Client Identity

CLIENT_IP_HEADER        = "CF-Connecting-IP"
FALLBACK_IP             = "0.0.0.0"
FALLBACK_USER_AGENT     = "unknown"

# CORS

ALLOWED_ORIGINS         = ("https://code.niceo.de",)
ALLOWED_METHODS         = ("POST", "GET", "OPTIONS")
ALLOWED_HEADERS         = ("Content-Type", "Authorization")
CORS_MAX_AGE            = 600

# Server

HOST                    = "0.0.0.0"
PORT                    = 8787
LOG_LEVEL               = "INFO"


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    """Immutable service configuration, built once and handed to each component."""

    redis_url: str = REDIS_URL
    redis_socket_timeout: float = REDIS_SOCKET_TIMEOUT

    max_payload_size: int = MAX_PAYLOAD_SIZE
    id_length: int = ID_LENGTH
    max_id_length: int = MAX_ID_LENGTH
    id_alphabet: str = ID_ALPHABET
    id_max_attempts: int = ID_MAX_ATTEMPTS

    min_ttl: int = MIN_TTL
    default_ttl: int = DEFAULT_TTL
    read_once_ttl: int = READ_ONCE_TTL
    ttl_map: Mapping[str, int] = field(default_factory=lambda: MappingProxyType(dict(TTL_MAP)))

    short_window_limit: int = SHORT_WINDOW_LIMIT
    short_window_seconds: int = SHORT_WINDOW_SECONDS
    long_window_limit: int = LONG_WINDOW_LIMIT
    long_window_seconds: int = LONG_WINDOW_SECONDS

    client_ip_header: Optional[str] = CLIENT_IP_HEADER

    allowed_origins: tuple[str, ...] = ALLOWED_ORIGINS
    allowed_methods: tuple[str, ...] = ALLOWED_METHODS
    allowed_headers: tuple[str, ...] = ALLOWED_HEADERS
    cors_max_age: int = CORS_MAX_AGE

    host: str = HOST
    port: int = PORT
    log_level: str = LOG_LEVEL

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("ESS_ALLOWED_ORIGINS")
        return cls(
            redis_url=os.getenv("ESS_REDIS_URL", REDIS_URL),
            short_window_limit=int(os.getenv("ESS_SHORT_LIMIT", str(SHORT_WINDOW_LIMIT))),
            short_window_seconds=int(os.getenv("ESS_SHORT_WINDOW_SECONDS", str(SHORT_WINDOW_SECONDS))),
            long_window_limit=int(os.getenv("ESS_LONG_LIMIT", str(LONG_WINDOW_LIMIT))),
            long_window_seconds=int(os.getenv("ESS_LONG_WINDOW_SECONDS", str(LONG_WINDOW_SECONDS))),
            client_ip_header=os.getenv("ESS_CLIENT_IP_HEADER", CLIENT_IP_HEADER) or None,
            allowed_origins=_split_csv(origins) if origins is not None else ALLOWED_ORIGINS,
            host=os.getenv("ESS_HOST", HOST),
            port=int(os.getenv("ESS_PORT", str(PORT))),
            log_level=os.getenv("ESS_LOG_LEVEL", LOG_LEVEL).upper(),
        )
