class SecretServiceError(Exception):
    """Base error. ``public_message`` is the only text a client ever sees."""

    status_code = 500
    public_message = "Internal Server Error"

    def __init__(self, message=None):
        super().__init__(message or self.public_message)


class ValidationError(SecretServiceError):
    status_code = 400

    def __init__(self , reason):
        self.reason = reason
        self.public_message = reason
        super().__init__(reason)


class SecretNotFoundError(SecretServiceError):
    status_code = 404
    public_message = "Secret not found or expired"

    def __init__(self , secret_id=None):
        self.secret_id = secret_id
        super().__init__(f"Secret {secret_id} not found")


class RateLimitedError(SecretServiceError):
    status_code = 429

    def __init__(self, scope, window_seconds):
        self.scope = scope
        self.window_seconds = window_seconds
        label = "Daily" if window_seconds == 86_400 else f"{window_seconds}s"
        self.public_message = f"Too Many Requests (Rate limit exceeded: {label})"
        super().__init__(self.public_message)


class ServiceBusyError(SecretServiceError):
    status_code = 503
    public_message = "Service busy, please try again"

    def __init__(self , attempts):
        self.attempts = attempts
        super().__init__(f"No free secret id after {attempts} attempts")


class StorageError(SecretServiceError):
    def __init__(self , operation):
        self.operation = operation
        super().__init__(f"Storage_error  = {operation}")


class InternalError(SecretServiceError):
    def __init__(self , public_message):
        self.public_message = public_message
        super().__init__(public_message)


class ConfigurationError(SecretServiceError):
    public_message = "Server configuration error"
