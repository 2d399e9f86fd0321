"""
API Layer - FastAPI Presentation Layer

Responsibility:
    HTTP interface for the application. Handles requests and responses
    and delegates to Application Layer services. No business logic.

Contains:
    - FastAPI routers (candidates, matches, decision-log)
    - Request/Response models (Pydantic)
    - Dependency injection setup (dependencies.py)
    - Middleware configuration (CORS, logging)

Does NOT contain:
    - Business logic (belongs to Domain layer)
    - Use case orchestration (belongs to Application layer)
    - Storage operations (belongs to Infrastructure layer)
"""
