"""
Core utilities shared across the store API.

This package hosts configuration, security primitives (password hashing and
opaque reset tokens), the SMTP mailer, the error taxonomy and the JSON
response envelopes. Services depend on these primitives instead of importing
storage layers or reading the environment directly.
"""
