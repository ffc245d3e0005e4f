from pydantic import BaseModel, ConfigDict


class BaseInfo(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        serialize_by_alias=True,
        use_enum_values=True,
    )
