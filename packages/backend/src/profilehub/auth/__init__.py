"""Authentication and authorization.

Learn: users register with email/password, log in to receive a signed
session token (JWT, one hour), and present it as
``Authorization: Bearer <token>``. The gate in dependencies.py resolves
the token to a CurrentIdentity before any handler that changes or
discloses private state runs.
"""
