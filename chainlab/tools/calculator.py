"""
计算器工具

供 MCP 服务端与本地 Agent 共用的四则运算实现
"""
from typing import Literal

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field


DIVIDE_BY_ZERO_MESSAGE = "Cannot divide by zero"

Operation = Literal["add", "subtract", "multiply", "divide"]


def calculate(operation: str, x: float, y: float) -> str:
    """执行四则运算，结果保留两位小数；除零与未知运算返回提示文本而不抛出"""
    if operation == "add":
        result = x + y
    elif operation == "subtract":
        result = x - y
    elif operation == "multiply":
        result = x * y
    elif operation == "divide":
        if y == 0:
            return DIVIDE_BY_ZERO_MESSAGE
        result = x / y
    else:
        return f"Unsupported operation: {operation}"
    return "%.2f" % result


class CalculateInput(BaseModel):
    operation: Operation = Field(description="The operation to perform (add, subtract, multiply, divide)")
    x: float = Field(description="First number")
    y: float = Field(description="Second number")


calculator_tool = StructuredTool.from_function(
    func=calculate,
    name="calculate",
    description="Perform basic arithmetic operations",
    args_schema=CalculateInput,
)
