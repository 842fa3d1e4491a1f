"""fitauth - PKCE login with a confidential token exchange relay."""

__version__ = "1.0.0"
