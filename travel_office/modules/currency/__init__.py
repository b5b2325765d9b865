from .rates import RateTable, convert_amount, convert_currency, to_base

__all__ = ["RateTable", "convert_amount", "convert_currency", "to_base"]
