"""Strict schema baselines with forbidden extras by default."""

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Neutral strict base for response DTOs."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, from_attributes=True)


class StrictRequestModel(BaseModel):
    """
    Request DTO base that always forbids unexpected fields.

    The booking forms send camelCase; fields declare camelCase aliases and
    snake_case names are accepted too.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True, populate_by_name=True)
