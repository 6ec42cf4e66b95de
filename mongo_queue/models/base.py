from typing import Annotated, Optional
from pydantic import BaseModel, Field, ConfigDict, BeforeValidator

# Standardizes MongoDB ObjectIds to strings
PyObjectId = Annotated[str, BeforeValidator(str)]

class MongoBaseModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra='ignore'
    )

    # Store-assigned identity, only known once the document is inserted
    storage_key: Optional[PyObjectId] = Field(None, alias="_id")
