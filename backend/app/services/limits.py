"""
Column-length checks shared by the services.

Limits are read from the mapped String(n) columns, so a schema change in
app/models moves the validation with it. Values are checked after the
services strip them, which is what gets stored.
"""

from typing import Optional

from sqlalchemy.orm import InstrumentedAttribute

from app.exceptions import ValidationError


def max_length(column: InstrumentedAttribute) -> int:
    return column.property.columns[0].type.length


def check_max_length(value: Optional[str], column: InstrumentedAttribute, field: str) -> None:
    """Raise ValidationError when value would not fit in column."""
    limit = max_length(column)
    if value is not None and len(value) > limit:
        raise ValidationError(
            f"{field} must be at most {limit} characters long",
            field=field,
            context={"max_length": limit},
        )
