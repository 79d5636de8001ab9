"""ActiveRecord-style model classes for game server data.

Models provide object-relational mapping with ActiveRecord pattern.
"""

# Re-export Model base class for convenient imports
from gameaccount.models.account import Account
from gameaccount.models.active_model import (
    ActiveModel,
    ActiveModelError,
    PreconditionError,
    ValidationError,
)

__all__ = [
    "ActiveModel",
    "ActiveModelError",
    "Account",
    "PreconditionError",
    "ValidationError",
]
