"""Security module for the AI Receptionist"""

from .middleware import (
    SecurityHeadersMiddleware,
    TwilioSignatureValidator,
    validate_twilio_signature,
)

__all__ = [
    "TwilioSignatureValidator",
    "SecurityHeadersMiddleware",
    "validate_twilio_signature",
]
