"""
条件重写工作流的状态定义与分支判定函数
"""
from typing import Literal
from typing_extensions import TypedDict


Decision = Literal["valid", "invalid"]
IntentRoute = Literal["student_rules", "employee_rules", "other"]

VALID = "valid"
INVALID = "invalid"

STUDENT_RULES_KEYWORD = "学生守则"
EMPLOYEE_RULES_KEYWORD = "员工规范"

OTHER_SCENARIO_ANSWER = "意图识别场景3:其他类场景"


class RewriteState(TypedDict, total=False):
    """
    一次工作流调用的状态

    每次调用都从新的状态开始，字段沿实际执行路径只写入一次：
    - query: 图的输入
    - original_query: 入口节点写入
    - decision: 分类节点写入
    - rewritten_query / intent: 仅在 valid 分支写入
    - answer: 终止节点写入的最终输出
    """
    query: str
    original_query: str
    decision: Decision
    rewritten_query: str
    intent: str
    answer: str


def classify_decision(text: str) -> Decision:
    """将分类模型的输出归一为 valid / invalid，无法识别时视为 invalid"""
    decision = (text or "").strip().lower()
    if decision in (VALID, INVALID):
        return decision
    return INVALID


def route_intent(text: str) -> IntentRoute:
    """按关键词包含关系判定意图分支"""
    intent = text or ""
    if STUDENT_RULES_KEYWORD in intent:
        return "student_rules"
    if EMPLOYEE_RULES_KEYWORD in intent:
        return "employee_rules"
    return "other"
