from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class MongoModel(BaseModel):
    id: UUID = Field(alias="_id", serialization_alias="id", default_factory=uuid4)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        json_schema_serialization_defaults_required=True,
    )

    def to_mongo(self) -> dict[str, Any]:
        """Convert the model to a document for MongoDB storage.

        ``id`` is stored as ``_id``. Decimal amounts are stored as strings so they
        keep their exact value and validate back into Decimal on load.
        """
        data = self.model_dump()
        if "id" in data:
            data["_id"] = data.pop("id")
        return {key: str(value) if isinstance(value, Decimal) else value for key, value in data.items()}
