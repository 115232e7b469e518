"""Domain layer errors."""

from enum import Enum
from typing import ClassVar


class DomainError(Exception):
    """Base domain error."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class NotAuthenticatedError(DomainError):
    """Raised when an operation needs a logged-in user and there is none."""

    pass


class InvalidAuthorizationError(DomainError):
    """Raised when a provider handshake cannot be started or finished."""

    pass


class IdentityErrorKind(str, Enum):
    """Kinds of identity resolution failure.

    Values are stable and safe to show to clients (e.g. as a query parameter).
    """

    AUTO_REGISTER_DISABLED = "auto_register_disabled"
    DUPLICATE_IDENTITY = "duplicate_identity"
    MISSING_DEFAULT_GROUP = "missing_default_group"
    PERSISTENCE_FAILURE = "persistence_failure"
    INVALID_EXTERNAL_PROFILE = "invalid_external_profile"


class IdentityError(DomainError):
    """Base error for identity resolution and linking."""

    kind: ClassVar[IdentityErrorKind]


class AutoRegisterDisabledError(IdentityError):
    """Login with an unknown identity while auto-registration is off."""

    kind = IdentityErrorKind.AUTO_REGISTER_DISABLED

    def __init__(self, provider: str, external_id: str):
        self.provider = provider
        self.external_id = external_id
        super().__init__(
            f"No account linked to {provider} identity {external_id} "
            "and registration through external providers is disabled"
        )


class DuplicateIdentityError(IdentityError):
    """The (provider, external_id) pair is already linked.

    Raised by repositories when the unique constraint rejects a write,
    typically because a concurrent request linked the identity first.
    """

    kind = IdentityErrorKind.DUPLICATE_IDENTITY

    def __init__(self, provider: str, external_id: str):
        self.provider = provider
        self.external_id = external_id
        super().__init__(f"Identity {provider}:{external_id} is already linked")


class MissingDefaultGroupError(IdentityError):
    """The group new users are placed in does not exist."""

    kind = IdentityErrorKind.MISSING_DEFAULT_GROUP

    def __init__(self, group_name: str):
        self.group_name = group_name
        super().__init__(f"Default group not found: {group_name}")


class PersistenceFailureError(IdentityError):
    """Storage fault while reading or writing accounts."""

    kind = IdentityErrorKind.PERSISTENCE_FAILURE

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        super().__init__(f"Storage failure during {operation}: {detail}")


class InvalidExternalProfileError(IdentityError):
    """Provider profile without a provider key or external identifier."""

    kind = IdentityErrorKind.INVALID_EXTERNAL_PROFILE
