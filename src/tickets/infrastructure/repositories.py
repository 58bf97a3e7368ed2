"""
Ticket Infrastructure Repositories
====================================

MongoDB implementations of the ticket repositories.
"""

from typing import List, Optional

from pymongo import ASCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from src.core import DuplicateKeyException, RepositoryException
from src.tickets.application import ITicketRepository, ITicketMessageRepository
from src.tickets.domain import Ticket, TicketMessage


class MongoTicketRepository(ITicketRepository):
    """Ticket documents in the ``tickets`` collection."""

    def __init__(self, collection: AsyncCollection):
        self._collection = collection

    async def create(self, ticket: Ticket) -> Ticket:
        """Create new ticket."""
        try:
            await self._collection.insert_one(ticket.to_document())
        except DuplicateKeyError:
            raise DuplicateKeyException(
                f"Ticket id '{ticket.ticket_id}' already exists",
                {"ticket_id": ticket.ticket_id}
            )
        except PyMongoError as e:
            raise RepositoryException(f"Failed to store ticket: {e}")
        return ticket

    async def get_by_ticket_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by public id."""
        try:
            doc = await self._collection.find_one({"ticketId": ticket_id}, {"_id": 0})
        except PyMongoError as e:
            raise RepositoryException(f"Failed to load ticket: {e}")
        return Ticket.from_document(doc) if doc else None

    async def update_status(self, ticket_id: str, status: str) -> None:
        try:
            await self._collection.update_one({"ticketId": ticket_id}, {"$set": {"status": status}})
        except PyMongoError as e:
            raise RepositoryException(f"Failed to update ticket: {e}")


class MongoTicketMessageRepository(ITicketMessageRepository):
    """Chat messages in the ``ticket_messages`` collection."""

    def __init__(self, collection: AsyncCollection):
        self._collection = collection

    async def append(self, message: TicketMessage) -> None:
        try:
            await self._collection.insert_one(message.to_document())
        except PyMongoError as e:
            raise RepositoryException(f"Failed to store message: {e}")

    async def list_for_ticket(self, ticket_id: str) -> List[TicketMessage]:
        """Messages ordered by timestamp; ObjectId breaks ties in insertion order."""
        try:
            cursor = self._collection.find({"ticketId": ticket_id}).sort(
                [("timestamp", ASCENDING), ("_id", ASCENDING)]
            )
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise RepositoryException(f"Failed to load messages: {e}")
        return [TicketMessage.from_document(doc) for doc in docs]
