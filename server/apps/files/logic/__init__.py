"""Business logic layer for files app.

This package contains all business logic for the drive:
- Catalog: folder listing, upload, file and folder records, delete
- Quota ledger: pre-flight checks and usage accounting
- Sharing: read/edit grants and public visibility
- Cascade: recursive folder delete with ledger adjustment

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).
"""
