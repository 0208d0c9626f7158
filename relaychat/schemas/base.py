# relaychat/schemas/base.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # The browser client speaks camelCase; accept both spellings on input
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
