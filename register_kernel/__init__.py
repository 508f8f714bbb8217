"""
register_kernel -- persistence and cross-cutting infrastructure for the
register-of-interests payment ledger.

Provides structured logging, the typed exception hierarchy, the injectable
clock, the SQLAlchemy engine/session layer and the ORM models.  Nothing in
the kernel imports from register_ingestion or register_sync.
"""
