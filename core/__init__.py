"""
Deal Intake - Core Business Logic

This module provides the deal submission pipeline:
1. Rate limiting (per caller, fixed window)
2. Attachment validation (size, type, category)
3. Field validation and sanitisation
4. Object storage upload (sequential, no retry)
5. Webhook relay of the sanitised submission
"""

from .submission import (
    AttachmentCategory,
    DealIntakeService,
    IntakeError,
    RateLimiter,
)

__all__ = [
    "AttachmentCategory",
    "DealIntakeService",
    "IntakeError",
    "RateLimiter",
]
