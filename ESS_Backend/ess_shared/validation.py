import re

from ESS_Backend.ess_shared import config, errors

_ID_PATTERN = re.compile(r"[A-Za-z0-9]+")


def utf16_length(value: str) -> int:
    """Length in UTF-16 code units, the unit browsers use for string length."""
    return len(value.encode("utf-16-le")) // 2


def validate_payload(encrypted_payload, max_size: int = config.MAX_PAYLOAD_SIZE) -> str:
    # JSON null, false, 0 and "" all count as "not supplied"
    if encrypted_payload is None or (isinstance(encrypted_payload, (bool, int, float, str)) and not encrypted_payload):
        raise errors.ValidationError("Encrypted payload is required")
    if not isinstance(encrypted_payload, str):
        raise errors.ValidationError("Invalid payload type")
    if len(encrypted_payload) == 0:
        raise errors.ValidationError("Payload cannot be empty")
    try:
        encrypted_payload.encode("utf-8")
    except UnicodeEncodeError:
        # lone surrogates: valid JSON, but not storable or returnable as UTF-8
        raise errors.ValidationError("Invalid payload encoding")
    if utf16_length(encrypted_payload) > max_size:
        raise errors.ValidationError("Payload too large")
    return encrypted_payload


def validate_secret_id(secret_id, max_length: int = config.MAX_ID_LENGTH) -> str:
    if not secret_id or not isinstance(secret_id, str):
        raise errors.ValidationError("Invalid ID")
    if len(secret_id) > max_length:
        raise errors.ValidationError("Invalid ID length")
    if not _ID_PATTERN.fullmatch(secret_id):
        raise errors.ValidationError("Invalid ID format")
    return secret_id
