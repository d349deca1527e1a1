from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import Field

from streamgate.core.db import MongoModel
from streamgate.utils import now


class Track(MongoModel):
    """A purchasable track.

    Created by the ingestion workflow and never edited afterwards. File names are
    relative to the uploads directory; the cover file follows ``<id>_cover.<ext>``.
    """

    id: str = Field(alias="_id", serialization_alias="id", default_factory=lambda: str(uuid4()))  # type: ignore[assignment]
    title: str
    artist: str
    description: str = ""
    price: Decimal = Field(gt=0)  # USD
    payout_address: str | None = None  # Wallet receiving payments for this track
    audio_file: str
    cover_file: str | None = None
    created_at: datetime = Field(default_factory=now)

    @property
    def is_payable(self) -> bool:
        return bool(self.payout_address)
