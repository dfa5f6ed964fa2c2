"""Result models for bulk copies."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field as PydanticField

from txsql.models.bulk import ColumnMapping


class BulkLoadResult(BaseModel):
    """Result of a bulk copy.

    Contains metrics about the copy: how many rows were sent, in how
    many batches, and how long it took.
    """

    destination_table: str = PydanticField(
        ...,
        description="Table the rows were copied into",
    )

    column_mappings: list[ColumnMapping] = PydanticField(
        default_factory=list,
        description="Column mappings in the order they were applied",
    )

    rows_copied: int = PydanticField(
        0,
        description="Number of rows sent to the server",
        ge=0,
    )

    batches: int = PydanticField(
        0,
        description="Number of executemany round trips",
        ge=0,
    )

    duration_seconds: float = PydanticField(
        0.0,
        description="Duration of the copy in seconds",
        ge=0.0,
    )

    started_at: datetime = PydanticField(
        ...,
        description="Copy start time",
    )

    completed_at: Optional[datetime] = PydanticField(
        None,
        description="Copy completion time",
    )

    model_config = {"extra": "forbid"}
