"""
Persistence adapters.

Services depend on SQLRepository rather than opening SQLAlchemy sessions
themselves, so tests can swap in a temporary database or a stub.
"""
