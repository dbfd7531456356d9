"""
Biowiki — Application Package Initializer
==========================================

What: Marks the `biowiki` directory as a Python package.
Why:  Enables module imports like `from biowiki.config import settings`.
Who:  Used by uvicorn, the `biowiki` console script and pytest.

Architecture Note:
    The wiki follows a layered architecture:

    ┌─────────────────────────────────────┐
    │   Routes + PathRouter (API Layer)   │  ← HTTP concerns, route classification
    ├─────────────────────────────────────┤
    │     WikiService (orchestration)     │  ← locking, validation, resolution
    ├─────────────────────────────────────┤
    │        Schemas (wire models)        │  ← Pydantic PageDetail, stubs, uploads
    ├─────────────────────────────────────┤
    │     Stores (filesystem layout)      │  ← webs, pages, versions, attachments
    └─────────────────────────────────────┘

    Data flows one level at a time:
    WebCollection → Web → Page → (VersionStore | AttachmentStore)
"""

__version__ = "0.3.0"
