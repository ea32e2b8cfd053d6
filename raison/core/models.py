"""Prompt catalog models.

PromptRecord mirrors the wire shape pushed by the catalog service
(``agentId`` on the wire, ``agent_id`` in Python). PromptFilter is the
query shape used by ``find``/``find_one``: every field optional, exact
match on the fields that are supplied. Filter values are kept as given and
compared without coercion, so ``{"version": "1"}`` matches nothing.
"""
from typing import Any, Dict, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import InvalidFilterError


class PromptRecord(BaseModel):
    """A single deployed prompt version."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    name: str
    agent_id: str = Field(alias="agentId")
    version: int
    content: str


class PromptFilter(BaseModel):
    """Partial record used to query the prompt store.

    Example:
        PromptFilter(agent_id="agent-1", name="greeting")
        PromptFilter.coerce({"agentId": "agent-1"})
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    id: Any = None
    name: Any = None
    agent_id: Any = Field(default=None, alias="agentId")
    version: Any = None
    content: Any = None

    def constraints(self) -> Dict[str, Any]:
        """Fields that were supplied, keyed by Python field name."""
        return self.model_dump(exclude_none=True)

    def matches(self, record: PromptRecord) -> bool:
        # Same type required: True == 1 and 1.0 == 1 are not matches
        return all(
            type(getattr(record, field)) is type(value) and getattr(record, field) == value
            for field, value in self.constraints().items()
        )

    @classmethod
    def coerce(
        cls, value: Union["PromptFilter", Mapping[str, Any], None]
    ) -> "PromptFilter":
        """Build a filter from None, an existing filter, or a mapping.

        Raises:
            InvalidFilterError: If value is not a mapping or names unknown
                fields.
        """
        if value is None:
            return cls()
        if isinstance(value, PromptFilter):
            return value
        if not isinstance(value, Mapping):
            raise InvalidFilterError(
                f"Prompt filter must be a mapping or PromptFilter, got {type(value).__name__}"
            )
        try:
            return cls.model_validate(dict(value))
        except ValidationError as e:
            raise InvalidFilterError(f"Invalid prompt filter: {e}") from e


FilterLike = Union[PromptFilter, Mapping[str, Any], None]
