from dataclasses import dataclass

from ..exceptions import ValidationError
from ..value_object import ValueObject


@dataclass(frozen=True)
class UserId(ValueObject):
    """Strongly-typed user identifier (opaque string issued by the identity service)."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValidationError("UserId cannot be empty", field="user_id", value=self.value)

    def __str__(self) -> str:
        return self.value
