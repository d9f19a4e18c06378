"""Rating error values.

``RatingError`` instances travel inside ``Err`` results. They subclass
``Exception`` so a caller that prefers exceptions can ``raise`` them
unchanged. ``RuleTableError`` is different: it is raised while a rule
table is being built or loaded, before any request is rated.
"""

from typing import Any, ClassVar

from pydantic import ValidationError


class RatingError(Exception):
    """Base class for errors returned by the rating engine."""

    kind: ClassVar[str] = "rating_error"

    def __init__(self, message: str, *, field: str | None = None) -> None:
        """Initialize rating error.

        Args:
            message: Machine-oriented description of the failure
            field: Request or table field that caused the failure
        """
        super().__init__(message)
        self.message = message
        self.field = field

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RatingError):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.message == other.message
            and self.field == other.field
        )

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.message, self.field))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, field={self.field!r})"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"kind": self.kind, "message": self.message, "field": self.field}


class RuleNotFound(RatingError):
    """No rule row matches the lookup key; a configuration defect."""

    kind: ClassVar[str] = "rule_not_found"

    def __init__(
        self,
        message: str,
        *,
        key: tuple[str, ...] = (),
        field: str | None = None,
    ) -> None:
        super().__init__(message, field=field)
        self.key = key

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["key"] = list(self.key)
        return data


class InvalidInput(RatingError):
    """The caller supplied a request the engine cannot rate."""

    kind: ClassVar[str] = "invalid_input"

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> "InvalidInput":
        """Build from the first problem reported by pydantic."""
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        return cls(first.get("msg", str(exc)), field=field)


class RuleTableError(Exception):
    """A rule table could not be built or loaded."""
