"""
Base schema types shared by request and response models.
"""

from decimal import Decimal
from typing import Any

from pydantic_core import core_schema


class Money(Decimal):
    """Money field that accepts numbers or numeric strings and always serializes as float."""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        def validate_money(value: Any) -> Decimal:
            if isinstance(value, bool):
                raise ValueError("Cannot convert bool to Money")
            if isinstance(value, Decimal):
                return value
            if isinstance(value, (int, float, str)):
                try:
                    return Decimal(str(value))
                except ArithmeticError as exc:
                    raise ValueError(f"Invalid amount: {value}") from exc
            raise ValueError(f"Cannot convert {type(value)} to Money")

        return core_schema.no_info_plain_validator_function(
            validate_money,
            serialization=core_schema.plain_serializer_function_ser_schema(
                float,
                info_arg=False,
                return_schema=core_schema.float_schema(),
            ),
        )
