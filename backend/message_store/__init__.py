"""
Message Store Backend - Application Package Initializer
=======================================================

What: Marks the `message_store` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The backend follows a thin layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     Services (Repository Ops)       │  ← Id validation, timeouts, mapping
    ├─────────────────────────────────────┤
    │          Schemas (Data)             │  ← Pydantic API contracts
    ├─────────────────────────────────────┤
    │     Database (MongoDB client)       │  ← One shared AsyncMongoClient
    └─────────────────────────────────────┘

    Routes turn HTTP into a single service call, services turn that call into a
    single store call, and the store client is shared by every request.
"""

__version__ = "1.0.0"
