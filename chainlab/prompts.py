"""
提示词模板

所有示例使用的聊天提示词，变量采用 f-string 语法
"""
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder


CLASSIFIER_SYSTEM_PROMPT = (
    "你是一个查询分类器。判断用户的输入是一个有效问题还是无效的垃圾信息/辱骂。请只回答 valid 或 invalid。"
)

REWRITER_SYSTEM_PROMPT = "你是一位专业的查询重写专家。请将用户的问题改写得更清晰、更适合搜索引擎。"

INTENT_CLASSIFIER_SYSTEM_PROMPT = (
    "你是一个意图分类器。根据用户问题判断意图场景。"
    "1、若用户的问题属于学生守则类的场景, 返回学生守则；"
    "2、若用户的问题属于员工规范类的场景，则返回员工规范；"
    "3、否则属于其他场景，返回其他。请只返回这三个词中的一个。"
)

STUDENT_RULES_SYSTEM_PROMPT = "你是一个AI助手，专门回答关于学生守则的问题。请根据用户的问题，提供详细和准确的回答。"

EMPLOYEE_RULES_SYSTEM_PROMPT = "你是一个AI助手，专门回答关于员工规范的问题。请根据用户的问题，提供详细和准确的回答。"


def get_classifier_prompt() -> ChatPromptTemplate:
    """有效/无效问题分类器提示词"""
    return ChatPromptTemplate.from_messages([
        ("system", CLASSIFIER_SYSTEM_PROMPT),
        ("human", "用户输入: {input}"),
    ])


def get_rewriter_prompt() -> ChatPromptTemplate:
    """查询重写提示词"""
    return ChatPromptTemplate.from_messages([
        ("system", REWRITER_SYSTEM_PROMPT),
        ("human", "用户问题: {input}"),
    ])


def get_intent_classifier_prompt() -> ChatPromptTemplate:
    """意图分类提示词"""
    return ChatPromptTemplate.from_messages([
        ("system", INTENT_CLASSIFIER_SYSTEM_PROMPT),
        ("human", "用户问题: {input}"),
    ])


def get_student_rules_prompt() -> ChatPromptTemplate:
    return ChatPromptTemplate.from_messages([
        ("system", STUDENT_RULES_SYSTEM_PROMPT),
        ("human", "问题: {input}"),
    ])


def get_employee_rules_prompt() -> ChatPromptTemplate:
    return ChatPromptTemplate.from_messages([
        ("system", EMPLOYEE_RULES_SYSTEM_PROMPT),
        ("human", "问题: {input}"),
    ])


def get_role_play_prompt() -> ChatPromptTemplate:
    return ChatPromptTemplate.from_messages([
        ("system", "You are a {role}."),
        ("human", "{input}"),
    ])


def get_tool_analysis_prompt() -> ChatPromptTemplate:
    """
    工具调用结果分析提示词

    变量: role, query, toolresult, 可选的 history_key 历史消息
    """
    return ChatPromptTemplate.from_messages([
        ("system", "你是一个{role}"),
        MessagesPlaceholder("history_key", optional=True),
        (
            "human",
            "[原始问题]:[{query}]，[工具调用答案]:[{toolresult}]，请你分析"
            "[工具调用答案]是否能回答[原始问题]。如果无法回复，请直接说无法回复",
        ),
    ])


def get_tool_agent_prompt() -> ChatPromptTemplate:
    """工具调用 Agent 提示词，变量: role, query, 可选的 chat_history"""
    return ChatPromptTemplate.from_messages([
        ("system", "你是一个{role}"),
        MessagesPlaceholder("chat_history", optional=True),
        (
            "human",
            "[原始问题]:{query}，你的任务就是调用工具，输出选择的工具和答案，"
            "以及对调用工具的答案是否正确进行分析。如果无法回答，请直接输出无法回答",
        ),
    ])


def get_user_info_prompt() -> ChatPromptTemplate:
    return ChatPromptTemplate.from_messages([
        ("system", "你是一名房产经纪人，结合用户的薪酬和工作，使用 user_info API，为其提供相关的房产信息。邮箱是必须的"),
        MessagesPlaceholder("message_histories", optional=True),
        ("human", "{query}"),
    ])
