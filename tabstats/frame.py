"""Column-oriented dataset handed to the analysis engine."""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

log = logging.getLogger(__name__)


class MissingColumnError(KeyError):
    """A column the caller named explicitly is not in the dataset."""

    def __init__(self, column: str, available: Sequence[str] = ()):
        self.column = column
        self.available = list(available)
        super().__init__(column)

    def __str__(self) -> str:
        if not self.available:
            return f"Column not found: {self.column}"
        return f"Column not found: {self.column}. Available: {', '.join(self.available)}"


class DataFrame(BaseModel):
    """Columns plus same-length cell lists. Never mutated by the engine."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    columns: list[str]
    data: dict[str, list[Any]]
    row_count: int = Field(alias="rowCount", ge=0)

    @model_validator(mode="after")
    def _check_shape(self) -> "DataFrame":
        if len(set(self.columns)) != len(self.columns):
            dupes = sorted({c for c in self.columns if self.columns.count(c) > 1})
            raise ValueError(f"Duplicate column names: {', '.join(dupes)}")
        missing = [c for c in self.columns if c not in self.data]
        if missing:
            raise ValueError(f"No data for columns: {', '.join(missing)}")
        extra = [c for c in self.data if c not in self.columns]
        if extra:
            raise ValueError(f"Data for undeclared columns: {', '.join(extra)}")
        for name in self.columns:
            if len(self.data[name]) != self.row_count:
                raise ValueError(
                    f"Column {name!r} has {len(self.data[name])} values, "
                    f"expected rowCount={self.row_count}"
                )
        return self

    @classmethod
    def from_columns(cls, mapping: Mapping[str, Sequence[Any]]) -> "DataFrame":
        columns = list(mapping)
        data = {name: list(values) for name, values in mapping.items()}
        row_count = len(data[columns[0]]) if columns else 0
        return cls(columns=columns, data=data, row_count=row_count)

    def has_column(self, name: str) -> bool:
        return name in self.data

    def column(self, name: str) -> list[Any]:
        try:
            return self.data[name]
        except KeyError:
            raise MissingColumnError(name, self.columns) from None
