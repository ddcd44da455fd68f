"""Exception taxonomy shared by the OTP core, delivery and HTTP layers."""


class OtpServiceError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(OtpServiceError):
    """Missing or malformed input; rejected before the store is touched."""


class InvalidLengthError(ValidationError):
    """Requested OTP length is not a positive integer."""


class InvalidOtpError(OtpServiceError):
    """No active OTP matches the identity and candidate code."""


class ExpiredOtpError(InvalidOtpError):
    """The identity's OTP expired before it was verified."""


class StorageError(OtpServiceError):
    """The persisted OTP collection could not be read or written."""


class DeliveryError(OtpServiceError):
    """The messaging channel failed to deliver (or was not ready)."""
