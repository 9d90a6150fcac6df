"""Data stores for persistence and caching.

Stores handle:
- PostgreSQL: async engine, sessions, ORM base
- Redis: read-model caching, TTL policies

No business/query logic in stores - that belongs in services.
"""
