"""Authentication use cases."""

from .attach import AttachUseCase
from .get_current_user import GetCurrentUserUseCase
from .login import LoginUseCase

__all__ = ["AttachUseCase", "GetCurrentUserUseCase", "LoginUseCase"]
