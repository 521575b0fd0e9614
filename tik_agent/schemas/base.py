from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RpcModel(BaseModel):
    """camelCase on the wire (mobile client), snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class SuccessResponse(RpcModel):
    success: bool = True
