class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class VaultError(Exception):
    """Stored portal secret could not be decrypted."""


class FormatError(VaultError):
    """Token is not in 'iv:ciphertext' hex form."""


class LengthError(VaultError):
    """Initialization vector is not 16 bytes."""


class KeyMismatchError(VaultError):
    """Cipher rejected the ciphertext (wrong key or corrupted data)."""


class PortalError(Exception):
    """Base error for the attendance portal protocol."""


class LoginError(PortalError):
    """Login handshake failed (token missing, credentials rejected, transport)."""


class ActionError(PortalError):
    """Attendance submission call failed."""
