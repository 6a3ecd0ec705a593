"""
Base Schemas.

Shared base classes for rows read from and written to the backend.
"""

from pydantic import BaseModel, ConfigDict


class RowModel(BaseModel):
    """
    Immutable record parsed from a row store row.

    Unknown columns are ignored so schema additions on the backend do not
    break older clients.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, from_attributes=True)
