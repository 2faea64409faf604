#!/usr/bin/env python3
"""
Catalog Management Utility

The API has no endpoint for creating books, so the catalog is loaded here:
- Seed books from a JSON file
- List all books
- Show collection statistics
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from api.config import config
from api.database import BookstoreDatabaseService, MongoDBManager
from utilities.logger import setup_logging


def load_books_file(path: str) -> List[Dict[str, Any]]:
    """
    Read a JSON array of books.

    Each entry needs title, author and isbn; review is optional.
    """
    with open(path, encoding="utf-8") as f:
        books = json.load(f)

    if not isinstance(books, list):
        raise ValueError("Seed file must contain a JSON array of books")

    for index, book in enumerate(books):
        if not isinstance(book, dict):
            raise ValueError(f"Entry {index} is not an object")
        missing = [field for field in ("title", "author", "isbn") if field not in book]
        if missing:
            raise ValueError(f"Entry {index} is missing {', '.join(missing)}")

    return books


def _make_manager() -> MongoDBManager:
    return MongoDBManager(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database,
        books_collection=config.books_collection,
        users_collection=config.users_collection
    )


async def seed_books(path: str) -> int:
    """Insert every book of a seed file."""
    books = load_books_file(path)

    db_manager = _make_manager()
    await db_manager.connect()
    try:
        service = BookstoreDatabaseService.from_manager(db_manager)
        inserted = await service.insert_books(books)
        print(f"✅ Inserted {inserted} books from {path}")
        return inserted
    finally:
        await db_manager.disconnect()


async def list_books() -> None:
    """Print the whole catalog."""
    db_manager = _make_manager()
    await db_manager.connect()
    try:
        service = BookstoreDatabaseService.from_manager(db_manager)
        books = await service.find_books()

        if not books:
            print("❌ No books found in database")
            return

        print(f"✅ Found {len(books)} books:")
        print()
        for i, book in enumerate(books, 1):
            print(f"{i:3d}. {book.title} by {book.author}")
            print(f"     ID: {book.id}")
            print(f"     ISBN: {book.isbn}")
            if book.review:
                print(f"     Review: {book.review}")
            print()
    finally:
        await db_manager.disconnect()


async def show_statistics() -> None:
    """Print document counts."""
    db_manager = _make_manager()
    await db_manager.connect()
    try:
        service = BookstoreDatabaseService.from_manager(db_manager)
        stats = await service.get_stats()
        print(f"📚 Total Books: {stats['books_count']}")
        print(f"👤 Total Users: {stats['users_count']}")
    finally:
        await db_manager.disconnect()


def print_usage() -> None:
    print("Usage: python manage_books.py [seed|list|stats] [file]")
    print()
    print("Commands:")
    print("  seed     - Insert books from a JSON file")
    print("  list     - List all books")
    print("  stats    - Show book and user counts")
    print()
    print("Examples:")
    print("  python manage_books.py seed books.json")
    print("  python manage_books.py list")
    print("  python manage_books.py stats")


async def main(argv: List[str]) -> int:
    """Main function."""
    if len(argv) < 2:
        print_usage()
        return 1

    command = argv[1].lower()

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
        debug=config.debug
    )

    try:
        if command == "seed":
            if len(argv) < 3:
                print("❌ Error: file required for seed command")
                print("Usage: python manage_books.py seed <file.json>")
                return 1
            await seed_books(argv[2])
        elif command == "list":
            await list_books()
        elif command == "stats":
            await show_statistics()
        else:
            print(f"❌ Unknown command: {command}")
            print("Available commands: seed, list, stats")
            return 1
    except (OSError, ValueError) as e:
        print(f"❌ Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv)))
