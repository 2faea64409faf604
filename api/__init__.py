"""
FastAPI RESTful API for the Book Shop.

This module provides a REST API for:
- Book catalog browsing and search by ISBN, author and title
- Reading, replacing and clearing book reviews
- User registration and credential checks
"""
