from ESS_Backend.ess_shared.config import Settings

_DEFAULT_SETTINGS = Settings()


def compute_ttl(expiry_option, read_once: bool, settings: Settings = _DEFAULT_SETTINGS) -> int:
    """Effective Redis lifetime in seconds for a new secret.

    Read-once secrets get a fixed outer bound regardless of the option; the
    delete-on-read path normally removes them much earlier.
    """
    if read_once:
        ttl = settings.read_once_ttl
    elif isinstance(expiry_option, str) and expiry_option in settings.ttl_map:
        ttl = settings.ttl_map[expiry_option]
    else:
        ttl = settings.default_ttl

    return max(ttl, settings.min_ttl)
