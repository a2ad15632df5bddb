#!/usr/bin/env python
"""Check that map table defaults also exist on the database side.

The ingest worker writes samples and coverage tiles with raw SQL, so a
NOT NULL column whose default lives only in the ORM would reject its rows.
Every such column must carry a server_default too.

Usage:
    python scripts/validate_server_defaults.py
"""

import sys

from sqlalchemy import Column, DateTime

from meshmap import models  # noqa: F401
from meshmap.database import Base


def is_timestamp(column: Column) -> bool:
    """Timestamps are always written explicitly from the store clock."""
    column_type = column.type
    return isinstance(column_type, DateTime) or isinstance(
        getattr(column_type, "impl", None), DateTime
    )


def needs_server_default(column: Column) -> bool:
    if column.primary_key or column.nullable or is_timestamp(column):
        return False
    return column.default is not None and column.server_default is None


def validate() -> list[str]:
    """Return one line per map column missing a server_default."""
    return [
        f"  {table.name}.{column.name}"
        for table in Base.metadata.sorted_tables
        for column in table.columns
        if needs_server_default(column)
    ]


def main() -> None:
    missing = validate()
    if not missing:
        print("OK: every defaulted NOT NULL map column has a server_default.")
        return
    print("ERROR: columns with an ORM default but no server_default:")
    for line in missing:
        print(line)
    sys.exit(1)


if __name__ == "__main__":
    main()
