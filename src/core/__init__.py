"""
Core business logic for file uploads.

This module does not import FastAPI. The upload service talks to
storage through the client handed to it in a StorageContext, so it can
be tested against the in-memory client or a fake.
"""
