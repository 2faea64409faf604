"""
Pytest configuration and shared fixtures.
"""

import copy
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from api.auth import PasswordHasher
from api.main import app, get_db_service, get_password_hasher
from api.models import BookResponse


class InMemoryBookstoreService:
    """
    Stand-in for BookstoreDatabaseService keeping documents in lists.
    IDs are parsed with ObjectId so malformed IDs fail the same way.
    """

    def __init__(self, books: Optional[List[Dict[str, Any]]] = None):
        self.books: List[Dict[str, Any]] = []
        self.users: List[Dict[str, Any]] = []
        for book in books or []:
            self.books.append({"_id": ObjectId(), **copy.deepcopy(book)})

    async def find_books(self, filter_query=None) -> List[BookResponse]:
        filter_query = filter_query or {}
        return [
            BookResponse.from_document(doc)
            for doc in self.books
            if all(doc.get(field) == value for field, value in filter_query.items())
        ]

    def _find_book(self, book_id: str) -> Optional[Dict[str, Any]]:
        object_id = ObjectId(book_id)
        for doc in self.books:
            if doc["_id"] == object_id:
                return doc
        return None

    async def get_book_by_id(self, book_id: str) -> Optional[BookResponse]:
        doc = self._find_book(book_id)
        return BookResponse.from_document(doc) if doc else None

    async def set_review(self, book_id: str, review: str) -> Optional[BookResponse]:
        doc = self._find_book(book_id)
        if not doc:
            return None
        doc["review"] = review
        return BookResponse.from_document(doc)

    async def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        for user in self.users:
            if user["email"] == email:
                return user
        return None

    async def create_user(self, name: str, email: str, hashed_password: str) -> str:
        user_id = ObjectId()
        self.users.append({"_id": user_id, "name": name, "email": email, "password": hashed_password})
        return str(user_id)

    async def health_check(self) -> Dict:
        return {"status": "healthy"}

    def book_id(self, index: int) -> str:
        return str(self.books[index]["_id"])


@pytest.fixture
def sample_books():
    """Catalog used by the route tests."""
    return [
        {"title": "Pride and Prejudice", "author": "Jane Austen", "isbn": "9780141439518", "review": "A classic."},
        {"title": "Emma", "author": "Jane Austen", "isbn": "9780141439587", "review": ""},
        {"title": "Dune", "author": "Frank Herbert", "isbn": "9780441172719"},
        {"title": "Dune", "author": "Frank Herbert", "isbn": "9780441013593", "review": "Second printing."},
    ]


@pytest.fixture
def fake_db_service(sample_books):
    """In-memory database service seeded with sample_books."""
    return InMemoryBookstoreService(sample_books)


@pytest.fixture
def password_hasher():
    """Hasher with the lowest bcrypt cost to keep tests fast."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def client(fake_db_service, password_hasher):
    """Test client with the database and hasher dependencies overridden."""
    app.dependency_overrides[get_db_service] = lambda: fake_db_service
    app.dependency_overrides[get_password_hasher] = lambda: password_hasher
    yield TestClient(app)
    app.dependency_overrides.clear()
