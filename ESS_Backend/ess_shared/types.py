from dataclasses import dataclass
from typing import Optional

SCOPE_SHORT = "short"
SCOPE_LONG = "long"


@dataclass
class SecretMetadata:
    read_once:          bool
    creation_time:      int             # ms since epoch
    user_expiry_option: Optional[str] = None

    def to_public(self) -> dict:
        return {
            "readOnce": self.read_once,
            "creationTime": self.creation_time,
            "userExpiryOption": self.user_expiry_option,
        }

@dataclass
class SecretRecord:
    secret_id: str
    payload:   str
    metadata:  SecretMetadata

@dataclass
class LimitResult:
    allowed: bool
    count:   int
    limit:   int

@dataclass
class AdmissionDecision:
    allowed:  bool
    scope:    Optional[str] = None
    degraded: bool = False

@dataclass
class HealthStatus:
    redis_connected: bool
    key_count:       int
    uptime_seconds:  float