"""
Pydantic 基础模式

对外 JSON 字段统一使用 camelCase，同时接受 snake_case 输入
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """请求/响应模式基类"""
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )
