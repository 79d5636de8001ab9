"""Account model class

This model represents a game server login account.

Attributes:
- id: Surrogate key, 0 until the account is first saved (set-once)
- name: Login name, unique per server
- password: SHA-1 hex digest of the last assigned plaintext
- type: Account group, 1 (normal player) to 5
- premdays: Remaining premium days, 0 to 65535
- lastday: Last day premium time was deducted
- email: Contact address
- creation: Creation time in epoch milliseconds
"""

import hashlib
import hmac
import logging
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any

from gameaccount.database import Database, WriteResult
from gameaccount.models.active_model import (
    ActiveModel,
    PreconditionError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MIN_TYPE = 1
MAX_TYPE = 5
MIN_PREMDAYS = 0
MAX_PREMDAYS = 65535


def hash_password(password: str) -> str:
    """One-way, deterministic password hash (hex digest)."""
    if not isinstance(password, str):
        raise ValidationError("Account password must be a string")
    return hashlib.sha1(password.encode("utf-8")).hexdigest()


def to_epoch_ms(value: datetime | date) -> int:
    """Convert a datetime, or a calendar date at UTC midnight, to epoch ms."""
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_id(current: int, value: Any) -> int:
    if not _is_int(value) or value < 0:
        raise ValidationError(f"Account id must be a non-negative integer, got {value!r}")
    if current:
        raise ValidationError("Account id can not be set")
    return value


def validate_type(value: Any) -> int:
    if not _is_int(value) or not MIN_TYPE <= value <= MAX_TYPE:
        raise ValidationError(
            f"Account type must be between {MIN_TYPE} and {MAX_TYPE}, got {value!r}"
        )
    return value


def validate_premdays(value: Any) -> int:
    if not _is_int(value) or not MIN_PREMDAYS <= value <= MAX_PREMDAYS:
        raise ValidationError(
            f"Account premium days must be between {MIN_PREMDAYS} and "
            f"{MAX_PREMDAYS}, got {value!r}"
        )
    return value


def validate_creation(value: Any) -> int:
    if isinstance(value, date):
        return to_epoch_ms(value)
    if not _is_int(value):
        raise ValidationError(
            f"Account creation must be epoch milliseconds or a date, got {value!r}"
        )
    return value


class Account(ActiveModel):
    table_name = "accounts"
    primary_key = "id"
    fields = (
        "id",
        "name",
        "password",
        "type",
        "premdays",
        "lastday",
        "email",
        "creation",
    )

    def __init__(self, database: Database, **kwargs):
        self._id = 0
        self.name: str | None = None
        self._password: str | None = None
        self._type = MIN_TYPE
        self._premdays = MIN_PREMDAYS
        self.lastday = 0
        self._email = ""
        self._creation = 0

        super().__init__(database, **kwargs)

    def __repr__(self):
        return f"Account(id={self.id}, name={self.name!r}, type={self.type})"

    @classmethod
    def create(cls, database: Database, name: str, password: str) -> "Account":
        """Build a new, unsaved account stamped with the current time.

        Raises:
            ValidationError: If name or password is empty
        """
        if not name:
            raise ValidationError("New account name not set")

        if not password:
            raise ValidationError("New account password not set")

        return cls(
            database,
            name=name,
            password=password,
            creation=datetime.now(timezone.utc),
        )

    @property
    def id(self) -> int:
        return self._id

    @id.setter
    def id(self, value: int) -> None:
        self._id = validate_id(self._id, value)

    @property
    def password(self) -> str | None:
        return self._password

    @password.setter
    def password(self, value: str) -> None:
        self._password = hash_password(value)

    @property
    def type(self) -> int:
        return self._type

    @type.setter
    def type(self, value: int) -> None:
        self._type = validate_type(value)

    @property
    def premdays(self) -> int:
        return self._premdays

    @premdays.setter
    def premdays(self, value: int) -> None:
        self._premdays = validate_premdays(value)

    @property
    def email(self) -> str:
        return self._email

    @email.setter
    def email(self, value: str) -> None:
        self._email = value if value is not None else ""

    @property
    def creation(self) -> int:
        return self._creation

    @creation.setter
    def creation(self, value: int | datetime | date) -> None:
        self._creation = validate_creation(value)

    def check_password(self, password: str) -> bool:
        """Return True if `password` hashes to the stored hash."""
        if self._password is None:
            return False
        return hmac.compare_digest(
            self._password.encode("utf-8"), hash_password(password).encode("utf-8")
        )

    def _load_row(self, row: dict[str, Any]) -> None:
        # Stored hash is kept verbatim; the setter would hash it again
        columns = {k: v for k, v in row.items() if k != "password"}
        super()._load_row(columns)
        self._password = row.get("password")

    def _before_save(self) -> None:
        if not self.name or not self.password:
            raise PreconditionError("Account name or password not set")

    def _after_save(self, result: WriteResult) -> None:
        if result.insert_id and not self.id:
            self.id = result.insert_id
            logger.info(f"Created account {self.name!r} with id {self.id}")

    @classmethod
    def _build_filter(cls, criteria: int | str | Mapping[str, Any]) -> dict[str, Any]:
        """Turn find() criteria into column/value pairs.

        An int (or a whole-number float) selects by id, a str by name.
        Mapping keys that are not account fields are dropped.

        Raises:
            TypeError: If criteria is not an id, str or mapping
            PreconditionError: If no account field is left to filter on
        """
        if isinstance(criteria, float) and criteria.is_integer():
            criteria = int(criteria)

        if _is_int(criteria):
            criteria = {"id": criteria}
        elif isinstance(criteria, str):
            criteria = {"name": criteria}
        elif not isinstance(criteria, Mapping):
            raise TypeError(
                f"Account criteria must be an id, a name or a mapping, "
                f"got {type(criteria).__name__}"
            )

        unknown = sorted(set(criteria) - set(cls.fields))
        if unknown:
            logger.warning(f"Ignoring unrecognized account filter fields: {unknown}")

        filters = {key: value for key, value in criteria.items() if key in cls.fields}
        if not filters:
            raise PreconditionError("No account fields to filter on")

        if "password" in filters:
            filters["password"] = hash_password(filters["password"])
        if isinstance(filters.get("creation"), date):
            filters["creation"] = to_epoch_ms(filters["creation"])

        return filters

    @classmethod
    async def find(
        cls, database: Database, criteria: int | str | Mapping[str, Any]
    ) -> list["Account"]:
        """Find all accounts matching criteria.

        Args:
            database: Database instance
            criteria: Account id, account name, or field/value mapping

        Returns:
            List of Account instances, ordered by id
        """
        filters = cls._build_filter(criteria)
        return await cls.where(database, **filters)

    @classmethod
    async def find_one(
        cls, database: Database, criteria: int | str | Mapping[str, Any]
    ) -> "Account | None":
        """Find the first account matching criteria, or None."""
        filters = cls._build_filter(criteria)
        accounts = await cls.where(database, _limit=1, **filters)
        return accounts[0] if accounts else None

    async def fetch(self) -> "Account | None":
        """Load the persisted copy of this account by id, else by name.

        Raises:
            PreconditionError: If neither id nor name is set
        """
        if self.id:
            return await self.find_one(self._database, self.id)
        if self.name:
            return await self.find_one(self._database, self.name)
        raise PreconditionError("Account ID or name not set")
