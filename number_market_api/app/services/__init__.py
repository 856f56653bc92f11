"""
Service layer abstraction.

Each service encapsulates business logic for a domain and talks to the
SQLite store through the primitives in ``core.db``.  API handlers only
translate between HTTP and these services.
"""
