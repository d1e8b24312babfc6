"""Infrastructure layer for videos app.

This package contains integrations with external systems:
- Blob storage on the local filesystem
- Metadata extraction (MIME sniffing via libmagic, id generation)
- Metadata stores (flat JSON file, relational table)

Keep infrastructure concerns separate from business logic.
"""
