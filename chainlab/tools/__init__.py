from .calculator import calculate, calculator_tool, DIVIDE_BY_ZERO_MESSAGE
from .user_info import get_user_info, user_info_tool

__all__ = [
    "calculate",
    "calculator_tool",
    "DIVIDE_BY_ZERO_MESSAGE",
    "get_user_info",
    "user_info_tool",
]
