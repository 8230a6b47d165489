from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """线上字段统一 camelCase，入参同时接受 snake_case"""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


class MessageResponse(CamelModel):
    message: str
    warning: str | None = None
