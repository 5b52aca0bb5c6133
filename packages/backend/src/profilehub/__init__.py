"""ProfileHub — account and profile backend for the mobile app.

Registration, login with short-lived session tokens, and profile
management (including the avatar image) for authenticated users.
"""

__version__ = "0.1.0"
