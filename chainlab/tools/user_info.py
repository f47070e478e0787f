import json

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field


class UserInfoInput(BaseModel):
    name: str = Field(description="用户的姓名")
    email: str = Field(description="用户的邮箱")


def get_user_info(name: str, email: str) -> str:
    """返回用户的公司、职位与薪酬信息"""
    return json.dumps(
        {
            "name": name,
            "email": email,
            "company": "Awesome company",
            "position": "CEO",
            "salary": "9999",
        },
        ensure_ascii=False,
    )


user_info_tool = StructuredTool.from_function(
    func=get_user_info,
    name="user_info",
    description="根据用户的姓名和邮箱，查询用户的公司、职位、薪酬信息",
    args_schema=UserInfoInput,
)
