"""
Shared library code for the Openverse media backend.

This package holds code reused by the FastAPI app in `api/`:
- the Openverse upstream client (`integrations.openverse`)
- user / saved-search persistence (`repositories`)
- password hashing, JWT issuance and Google OAuth (`auth`)

App entrypoints (FastAPI routers) should live outside this package and
import from `openverse_backend` rather than the other way around.
"""
