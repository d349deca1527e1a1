"""Persistence backends for stream sessions and the payment log."""

from typing import Any, Protocol
from uuid import UUID

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from streamgate.core.modules.stream.models import PaymentRecord, StreamSession, TokenCredential

# Expired sessions are logically absent at once; documents are purged a day later
EXPIRED_RETENTION_SECONDS = 24 * 60 * 60


class StreamStore(Protocol):
    async def on_start(self) -> None: ...

    async def create(self, stream: StreamSession, payment: PaymentRecord) -> None:
        """Persist a session together with its payment record, all or nothing."""
        ...

    async def get_by_id(self, stream_id: UUID) -> StreamSession | None: ...


class MongoStreamStore:
    """Sessions in ``streams`` and payments in ``payments``, written in one transaction.

    Multi-document transactions require a replica set (a single-node one is enough).
    """

    def __init__(self, client: AsyncMongoClient[dict[str, Any]], database: AsyncDatabase[dict[str, Any]]) -> None:
        self._client = client
        self._streams = database.get_collection("streams")
        self._payments = database.get_collection("payments")

    async def on_start(self) -> None:
        await self._streams.create_index(
            [("credential.access_token", 1)],
            unique=True,
            partialFilterExpression={"credential.kind": "token"},
        )
        await self._streams.create_index([("track_id", 1)])
        await self._streams.create_index([("expires_at", 1)], expireAfterSeconds=EXPIRED_RETENTION_SECONDS)
        await self._payments.create_index([("stream_id", 1)])
        await self._payments.create_index([("track_id", 1), ("created_at", -1)])

    async def create(self, stream: StreamSession, payment: PaymentRecord) -> None:
        async with self._client.start_session() as session, await session.start_transaction():
            await self._streams.insert_one(stream.to_mongo(), session=session)
            await self._payments.insert_one(payment.to_mongo(), session=session)

    async def get_by_id(self, stream_id: UUID) -> StreamSession | None:
        doc = await self._streams.find_one({"_id": stream_id})
        if doc is None:
            return None
        return StreamSession.model_validate(doc)


class MemoryStreamStore:
    """Process-local store; checks every constraint before touching state."""

    def __init__(self) -> None:
        self.streams: dict[UUID, StreamSession] = {}
        self.payments: list[PaymentRecord] = []
        self._tokens: set[str] = set()

    async def on_start(self) -> None:
        pass

    async def create(self, stream: StreamSession, payment: PaymentRecord) -> None:
        if stream.id in self.streams:
            raise ValueError(f"Duplicate stream id: {stream.id}")
        token = stream.credential.access_token if isinstance(stream.credential, TokenCredential) else None
        if token is not None and token in self._tokens:
            raise ValueError("Duplicate access token")
        self.streams[stream.id] = stream
        if token is not None:
            self._tokens.add(token)
        self.payments.append(payment)

    async def get_by_id(self, stream_id: UUID) -> StreamSession | None:
        return self.streams.get(stream_id)
