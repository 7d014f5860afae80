from typing import Any, Optional


class IntakeError(Exception):
    """Base for every failure that is reported back to the caller."""

    status_code = 500
    code = 'server_error'
    message = 'Server error'

    def __init__(self, message: Optional[str] = None, detail: Any = None) -> None:
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {'error': self.message}
        if self.detail is not None:
            payload['detail'] = self.detail
        return payload


class ValidationError(IntakeError):
    status_code = 400
    code = 'validation_error'
    message = 'Invalid request'


class MissingFieldError(ValidationError):
    code = 'missing_field'

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f'missing required field: {field}')


class InvalidDateError(ValidationError):
    code = 'invalid_date'

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__('invalid incident date', detail=value)


class PolicyError(IntakeError):
    status_code = 400
    code = 'evidence_policy'
    message = 'Evidence policy violation'


class Unauthorized(IntakeError):
    status_code = 401
    code = 'unauthorized'
    message = 'Unauthorized'


class ConfigurationError(IntakeError):
    status_code = 500
    code = 'configuration_error'
    message = 'Missing server configuration'


class StorageError(IntakeError):
    status_code = 502
    code = 'storage_error'
    message = 'Storage request failed'


class GatewayError(IntakeError):
    status_code = 502
    code = 'gateway_error'
    message = 'Incident store request failed'


class ServerError(IntakeError):
    pass
