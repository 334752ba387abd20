"""
Column types for structured data kept inside scalar JSON columns.
"""

from decimal import Decimal

from sqlalchemy import JSON
from sqlalchemy.types import TypeDecorator

CENTS = Decimal("0.01")


class DecimalMap(TypeDecorator):
    """
    A {name: amount} mapping stored as a JSON object of numbers.

    Amounts are rounded to cents on the way in and come back as Decimal.
    """

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return {str(key): float(Decimal(str(amount)).quantize(CENTS)) for key, amount in value.items()}

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return {key: Decimal(str(amount)).quantize(CENTS) for key, amount in value.items()}
