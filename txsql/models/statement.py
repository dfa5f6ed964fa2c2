"""Statement models.

A statement is either SQL text or the name of a stored procedure. It is
a plain value until it is bound to a transaction.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field as PydanticField, field_validator
from typing_extensions import Annotated


class CommandKind(str, Enum):
    """How a bound command is sent to the server."""

    TEXT = "text"
    STORED_PROCEDURE = "stored_procedure"


class CommandText(BaseModel):
    """A SQL text statement with ``:name`` parameter placeholders.

    Examples:
        >>> CommandText(sql="SELECT name FROM people WHERE id = :id")
    """

    kind: Literal["text"] = "text"
    sql: str = PydanticField(
        ...,
        description="SQL text",
    )

    model_config = {"extra": "forbid", "frozen": True}

    @field_validator("sql")
    @classmethod
    def validate_sql(cls, v: str) -> str:
        """Reject blank SQL."""
        if not v.strip():
            raise ValueError("sql must not be empty")
        return v


class StoredProcedure(BaseModel):
    """A stored procedure invocation by name.

    Examples:
        >>> StoredProcedure(name="dbo.archive_orders")
    """

    kind: Literal["stored_procedure"] = "stored_procedure"
    name: str = PydanticField(
        ...,
        description="Procedure name, optionally schema-qualified",
    )

    model_config = {"extra": "forbid", "frozen": True}

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject blank names."""
        v = v.strip()
        if not v:
            raise ValueError("procedure name must not be empty")
        return v


Statement = Annotated[
    Union[CommandText, StoredProcedure],
    PydanticField(discriminator="kind"),
]


def new_cmd(sql: str) -> CommandText:
    """Create a CommandText statement."""
    return CommandText(sql=sql)


def new_sproc(name: str) -> StoredProcedure:
    """Create a StoredProcedure statement."""
    return StoredProcedure(name=name)
