"""
Core utilities shared across the account service.

This package hosts configuration, password hashing, signed tokens, the
mailer adapter and the error taxonomy. Services depend on these primitives
instead of importing FastAPI or storage layers directly.
"""
