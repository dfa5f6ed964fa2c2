"""Bulk copy models.

This module defines the column mapping and option models used by the
bulk loader.
"""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel, Field as PydanticField


class ColumnMapping(BaseModel):
    """Maps one source column onto one destination column.

    The source side is a column name or a zero-based ordinal.

    Examples:
        >>> ColumnMapping(source="Col1", destination="col_1")
        >>> ColumnMapping(source=0, destination="id")
    """

    source: Union[int, str] = PydanticField(
        ...,
        description="Source column name or ordinal",
    )
    destination: str = PydanticField(
        ...,
        description="Destination column name",
        min_length=1,
    )

    model_config = {"extra": "forbid", "frozen": True}

    def __str__(self) -> str:
        return f"{self.source}->{self.destination}"


class BulkCopyOptions(BaseModel):
    """Policy for a bulk copy.

    These are fixed by the loader mode, not tuned per call:
    - check_constraints: Enforce CHECK constraints while copying
    - keep_identity: Keep identity values from the source
    - table_lock: Lock the destination table for the duration of the copy
    - use_own_transaction: The copy runs in a transaction of its own
    """

    check_constraints: bool = True
    keep_identity: bool = True
    table_lock: bool = False
    use_own_transaction: bool = False

    model_config = {"extra": "forbid", "frozen": True}


#: Options for copies that run inside the caller's transaction
TRANSACTION_COPY_OPTIONS = BulkCopyOptions()

#: Options for copies that run in their own transaction on a bare connection
CONNECTION_COPY_OPTIONS = BulkCopyOptions(use_own_transaction=True)
