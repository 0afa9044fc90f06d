"""
High-level use cases for the store API.

Each service module orchestrates repositories/adapters to implement business
rules (register, log in, reset a password, manage categories and coupons).
Routers call these services instead of touching the database directly.
"""
