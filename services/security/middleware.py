"""
=====================================================
AI Receptionist - Webhook Security
=====================================================
Twilio signature validation for the webhook routes and
security headers for every response.
"""

from typing import Callable, Optional

from fastapi import HTTPException, Request, Response, status
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from twilio.request_validator import RequestValidator


class TwilioSignatureValidator:
    """
    Validates Twilio webhook request signatures.

    Twilio signs every webhook with the X-Twilio-Signature header,
    computed over the public URL and the posted form fields.
    """

    def __init__(self, auth_token: str):
        self.validator = RequestValidator(auth_token)

    async def validate_request(self, request: Request, url: Optional[str] = None) -> bool:
        """
        Validate a Twilio webhook request.

        Args:
            request: FastAPI request object
            url: Public URL override (Twilio signs the URL it called, not ours)

        Returns:
            True if signature is valid
        """
        signature = request.headers.get("X-Twilio-Signature", "")
        if not signature:
            logger.warning("Twilio: Missing X-Twilio-Signature header")
            return False

        if url:
            request_url = url
        else:
            proto = request.headers.get("X-Forwarded-Proto", request.url.scheme)
            host = request.headers.get("X-Forwarded-Host", request.headers.get("Host", ""))
            request_url = f"{proto}://{host}{request.url.path}"

        if request.method == "POST":
            params = dict(await request.form())
        else:
            params = dict(request.query_params)

        is_valid = self.validator.validate(request_url, params, signature)
        if not is_valid:
            logger.warning(f"Twilio: Invalid signature for {request_url} (params: {list(params.keys())})")
        return is_valid


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to all responses.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if request.headers.get("X-Forwarded-Proto") == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-Frame-Options"] = "DENY"
        return response


# Dependency for Twilio webhook endpoints
async def validate_twilio_signature(request: Request) -> bool:
    """
    FastAPI dependency to validate Twilio webhook signatures.

    Usage:
        @app.post("/voice/incoming", dependencies=[Depends(validate_twilio_signature)])
    """
    from config.settings import get_settings
    settings = get_settings()

    if not settings.validate_twilio_signature:
        return True

    if not settings.twilio_auth_token:
        logger.warning("Twilio: Signature validation enabled but no auth token configured")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid Twilio signature")

    validator = TwilioSignatureValidator(settings.twilio_auth_token)

    # Twilio signs against the public URL, not the internal container URL
    public_url = settings.callback_url(request.url.path) if settings.public_base_url else None

    if not await validator.validate_request(request, public_url):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid Twilio signature")

    return True
