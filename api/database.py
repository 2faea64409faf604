"""
MongoDB connection handling and the database service layer for the API.
"""

from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure

from api.models import BookResponse

logger = structlog.get_logger(__name__)


class MongoDBManager:
    """
    Owns the MongoDB client for the lifetime of the process.
    Opened once at startup and closed at shutdown.
    """

    def __init__(
        self,
        connection_url: str,
        database_name: str,
        books_collection: str = "books",
        users_collection: str = "users"
    ):
        """
        Initialize MongoDB manager.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            books_collection: Name of the book collection
            users_collection: Name of the user collection
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.books_collection_name = books_collection
        self.users_collection_name = users_collection
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url)
            self.database = self.client[self.database_name]

            # Test connection
            await self.client.admin.command("ping")
            logger.info("Successfully connected to MongoDB", database=self.database_name)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    @property
    def books(self) -> AsyncIOMotorCollection:
        return self.database[self.books_collection_name]

    @property
    def users(self) -> AsyncIOMotorCollection:
        return self.database[self.users_collection_name]

    async def _create_indexes(self) -> None:
        """
        Create lookup indexes for the exact-match queries.
        None of them are unique: duplicate books are allowed and email
        uniqueness is only checked at registration time.
        """
        try:
            await self.books.create_index("isbn")
            await self.books.create_index("author")
            await self.books.create_index("title")
            await self.users.create_index("email")
            logger.info("Successfully created MongoDB indexes")

        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise


class BookstoreDatabaseService:
    """Database service for API operations."""

    def __init__(self, books_collection: AsyncIOMotorCollection, users_collection: AsyncIOMotorCollection, database=None):
        self.database = database
        self.books_collection = books_collection
        self.users_collection = users_collection

    @classmethod
    def from_manager(cls, manager: MongoDBManager) -> "BookstoreDatabaseService":
        return cls(manager.books, manager.users, database=manager.database)

    async def find_books(self, filter_query: Optional[Dict[str, str]] = None) -> List[BookResponse]:
        """
        Get every book matching an exact-match filter.

        Args:
            filter_query: Field/value pairs, e.g. {"author": "Jane Austen"}.
                An empty or missing filter returns the whole catalog.

        Returns:
            List of matching books, empty if none match
        """
        filter_query = filter_query or {}
        try:
            cursor = self.books_collection.find(filter_query)
            books_docs = await cursor.to_list(length=None)
            return [BookResponse.from_document(doc) for doc in books_docs]

        except Exception as e:
            logger.error("Failed to get books", error=str(e), filter_query=filter_query)
            raise

    async def get_book_by_id(self, book_id: str) -> Optional[BookResponse]:
        """
        Get a single book by ID.

        Args:
            book_id: Book identifier (MongoDB ObjectId as a hex string)

        Returns:
            BookResponse if found, None otherwise

        Raises:
            bson.errors.InvalidId: If book_id is not a valid ObjectId
        """
        try:
            book_doc = await self.books_collection.find_one({"_id": ObjectId(book_id)})
            if book_doc:
                return BookResponse.from_document(book_doc)
            return None

        except Exception as e:
            logger.error("Failed to get book by ID", book_id=book_id, error=str(e))
            raise

    async def set_review(self, book_id: str, review: str) -> Optional[BookResponse]:
        """
        Overwrite the review of a book.

        Args:
            book_id: Book identifier
            review: New review text; an empty string clears the review

        Returns:
            The updated book, or None if no book has that ID
        """
        try:
            book_doc = await self.books_collection.find_one_and_update(
                {"_id": ObjectId(book_id)},
                {"$set": {"review": review}},
                return_document=ReturnDocument.AFTER
            )
            if book_doc:
                logger.info("Book review updated", book_id=book_id, cleared=review == "")
                return BookResponse.from_document(book_doc)
            return None

        except Exception as e:
            logger.error("Failed to update book review", book_id=book_id, error=str(e))
            raise

    async def insert_books(self, books: List[Dict[str, Any]]) -> int:
        """
        Insert catalog entries.

        Args:
            books: Book documents with title, author, isbn and optional review

        Returns:
            Number of inserted books
        """
        if not books:
            return 0

        book_dicts = []
        for book in books:
            book_dicts.append({
                "title": book.get("title"),
                "author": book.get("author"),
                "isbn": book.get("isbn"),
                "review": book.get("review", ""),
            })

        try:
            result = await self.books_collection.insert_many(book_dicts)
            logger.info("Books inserted", total=len(result.inserted_ids))
            return len(result.inserted_ids)

        except Exception as e:
            logger.error("Failed to insert books", error=str(e))
            raise

    async def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """
        Get the raw user document for an email address.

        Returns:
            The user document including its password hash, None if absent
        """
        try:
            return await self.users_collection.find_one({"email": email})

        except Exception as e:
            logger.error("Failed to get user by email", error=str(e))
            raise

    async def create_user(self, name: str, email: str, hashed_password: str) -> str:
        """
        Store a new user.

        Args:
            name: Display name
            email: Email address
            hashed_password: Password hash, never the plaintext

        Returns:
            ID of the created user
        """
        try:
            result = await self.users_collection.insert_one({
                "name": name,
                "email": email,
                "password": hashed_password,
            })
            logger.info("User registered", user_id=str(result.inserted_id))
            return str(result.inserted_id)

        except Exception as e:
            logger.error("Failed to create user", error=str(e))
            raise

    async def get_stats(self) -> Dict[str, int]:
        """Count documents in both collections."""
        try:
            return {
                "books_count": await self.books_collection.count_documents({}),
                "users_count": await self.users_collection.count_documents({}),
            }

        except Exception as e:
            logger.error("Failed to get stats", error=str(e))
            raise

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            return {"status": "healthy"}
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
