"""
Risk package - client-side precision and minimum-size checks.
"""

from futures_terminal.risk.validator import Validator

__all__ = ["Validator"]
