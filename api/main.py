"""
FastAPI main application for the Book Shop API.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Dict, List, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.auth import PasswordHasher
from api.config import config as api_config
from api.database import BookstoreDatabaseService, MongoDBManager
from api.models import (
    BookResponse, ReviewUpdateRequest, RegisterRequest, LoginRequest,
    MessageResponse, ErrorResponse, HealthResponse
)

# Setup logging
logger = structlog.get_logger(__name__)

INTERNAL_ERROR = "Internal Server Error"
BOOK_NOT_FOUND = "Book not found"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Book Shop API")

    db_manager = MongoDBManager(
        connection_url=api_config.mongodb_url,
        database_name=api_config.mongodb_database,
        books_collection=api_config.books_collection,
        users_collection=api_config.users_collection
    )
    try:
        await db_manager.connect()
        app.state.db_service = BookstoreDatabaseService.from_manager(db_manager)
        logger.info("Database connection established")
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        await db_manager.disconnect()
        raise

    yield

    # Shutdown
    logger.info("Shutting down Book Shop API")
    app.state.db_service = None
    await db_manager.disconnect()


# Create FastAPI application
app = FastAPI(
    title=api_config.api_title,
    description=api_config.api_description,
    version=api_config.api_version,
    lifespan=lifespan
)
app.state.db_service = None
app.state.password_hasher = PasswordHasher()

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
)


def get_db_service(request: Request) -> BookstoreDatabaseService:
    """Database service opened by the lifespan handler."""
    db_service = request.app.state.db_service
    if db_service is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR
        )
    return db_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    """Malformed or incomplete JSON bodies fall into the generic error."""
    logger.error("Invalid request body", path=request.url.path, errors=str(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=INTERNAL_ERROR).model_dump()
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=INTERNAL_ERROR).model_dump()
    )


def internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=INTERNAL_ERROR
    )


async def _find_books(db_service: BookstoreDatabaseService, filter_query: Optional[Dict[str, str]] = None):
    try:
        books = await db_service.find_books(filter_query)
        return [book.model_dump() for book in books]
    except Exception as e:
        logger.error("Failed to get books", filter_query=filter_query, error=str(e))
        raise internal_error()


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    try:
        db_status = "unavailable"
        db_service = request.app.state.db_service
        if db_service:
            health_info = await db_service.health_check()
            db_status = health_info.get("status", "unknown")

        return HealthResponse(
            status="healthy" if db_status == "healthy" else "degraded",
            timestamp=datetime.utcnow(),
            version=api_config.api_version,
            database_status=db_status
        )
    except Exception as e:
        logger.error("Health check failed", error=str(e))
        return HealthResponse(
            status="unhealthy",
            timestamp=datetime.utcnow(),
            version=api_config.api_version,
            database_status="unhealthy"
        )


# Books endpoints
@app.get("/books", response_model=List[BookResponse], tags=["Books"])
@app.get("/books/all", response_model=List[BookResponse], tags=["Books"])
async def get_books(db_service: BookstoreDatabaseService = Depends(get_db_service)):
    """Get every book in the catalog."""
    return await _find_books(db_service)


@app.get("/books/isbn/{isbn:path}", response_model=List[BookResponse], tags=["Books"])
@app.get("/books/search/isbn/{isbn:path}", response_model=List[BookResponse], tags=["Books"])
async def get_books_by_isbn(isbn: str, db_service: BookstoreDatabaseService = Depends(get_db_service)):
    """Get the books whose ISBN is exactly **isbn**."""
    return await _find_books(db_service, {"isbn": isbn})


@app.get("/books/author/{author:path}", response_model=List[BookResponse], tags=["Books"])
@app.get("/books/search/author/{author:path}", response_model=List[BookResponse], tags=["Books"])
async def get_books_by_author(author: str, db_service: BookstoreDatabaseService = Depends(get_db_service)):
    """Get the books whose author is exactly **author** (case-sensitive)."""
    return await _find_books(db_service, {"author": author})


@app.get("/books/title/{title:path}", response_model=List[BookResponse], tags=["Books"])
@app.get("/books/search/title/{title:path}", response_model=List[BookResponse], tags=["Books"])
async def get_books_by_title(title: str, db_service: BookstoreDatabaseService = Depends(get_db_service)):
    """Get the books whose title is exactly **title** (case-sensitive)."""
    return await _find_books(db_service, {"title": title})


# Review endpoints
@app.get("/books/{book_id}/review", tags=["Reviews"])
async def get_book_review(book_id: str, db_service: BookstoreDatabaseService = Depends(get_db_service)):
    """
    Get the review text of a book.

    - **book_id**: Book identifier (MongoDB ObjectId)
    """
    try:
        book = await db_service.get_book_by_id(book_id)

        if not book:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=BOOK_NOT_FOUND
            )

        return JSONResponse(content=book.review)

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to get book review", book_id=book_id, error=str(e))
        raise internal_error()


@app.put("/books/{book_id}/review", response_model=MessageResponse, tags=["Reviews"])
async def update_book_review(
    book_id: str,
    body: ReviewUpdateRequest,
    db_service: BookstoreDatabaseService = Depends(get_db_service)
):
    """Add or replace the review of a book."""
    try:
        book = await db_service.set_review(book_id, body.review)

        if not book:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=BOOK_NOT_FOUND
            )

        return MessageResponse(message="Book review updated successfully")

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to update book review", book_id=book_id, error=str(e))
        raise internal_error()


@app.delete("/books/{book_id}/review", response_model=MessageResponse, tags=["Reviews"])
async def delete_book_review(book_id: str, db_service: BookstoreDatabaseService = Depends(get_db_service)):
    """
    Clear the review of a book.

    Reviews are not owned by users, so this empties the book's single
    review field rather than removing one user's review.
    """
    try:
        book = await db_service.set_review(book_id, "")

        if not book:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=BOOK_NOT_FOUND
            )

        return MessageResponse(message="Book review deleted successfully")

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to delete book review", book_id=book_id, error=str(e))
        raise internal_error()


# User endpoints
@app.post(
    "/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Users"]
)
async def register(
    body: RegisterRequest,
    db_service: BookstoreDatabaseService = Depends(get_db_service),
    hasher: PasswordHasher = Depends(get_password_hasher)
):
    """
    Register a new user.

    The email check and the insert are separate operations, so two
    concurrent registrations for one email can both succeed.
    """
    try:
        existing_user = await db_service.find_user_by_email(body.email)

        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        hashed_password = await hasher.hash_password_async(body.password)
        await db_service.create_user(body.name, body.email, hashed_password)

        return MessageResponse(message="Registration successful")

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to register user", error=str(e))
        raise internal_error()


@app.post("/login", response_model=MessageResponse, tags=["Users"])
async def login(
    body: LoginRequest,
    db_service: BookstoreDatabaseService = Depends(get_db_service),
    hasher: PasswordHasher = Depends(get_password_hasher)
):
    """Check a user's credentials. No session or token is issued."""
    invalid_credentials = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid email or password"
    )
    try:
        user = await db_service.find_user_by_email(body.email)

        if not user:
            logger.warning("Login attempt for unknown email")
            raise invalid_credentials

        if not await hasher.verify_password_async(body.password, user.get("password") or ""):
            logger.warning("Login attempt with wrong password", user_id=str(user.get("_id")))
            raise invalid_credentials

        return MessageResponse(message="Login successful")

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to log in user", error=str(e))
        raise internal_error()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level=api_config.log_level.lower()
    )
