"""
External system integrations (Openverse, Google OAuth, etc.).

New upstream clients should live under this namespace so they remain
decoupled from app entrypoints (`api/`).
"""
