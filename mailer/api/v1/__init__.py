"""
API v1 package.

Contains versioned API routes for newsletter sign-up and subscription management.
"""

from mailer.api.v1.routes import router

__all__ = ["router"]
