"""Business logic layer for videos app.

This package contains all business logic for video operations:
- Ingest: validate, persist blob, commit metadata record
- Retrieval: password gate, blob streaming, download counting
- Retention: purge records and blobs older than the retention age

Operations receive their store, storage and limits as arguments;
only views and management commands read Django settings.
"""
