"""
High-level use cases for the account service.

Each service module orchestrates repositories/adapters to implement business
rules (signup, activation, reset password, federated login, profile updates).

Routers (FastAPI endpoints) call these services instead of manipulating the
database or tokens directly.
"""
