"""
S3 Upload Service - a REST facade over S3 object storage.

This package contains the complete application:
- core: Upload logic and domain models
- infrastructure: S3 client factory and in-memory mock
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "1.0.0"
