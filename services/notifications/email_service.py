"""
=====================================================
AI Receptionist - Email Service (Microsoft Graph)
=====================================================
Sends owner notifications (escalations, call summaries, voicemails)
via Microsoft Graph API.
"""

import time
from typing import Optional

import aiohttp
from loguru import logger


class EmailService:
    """
    Email service for owner notifications via Microsoft Graph API.

    Required settings:
    - MSGRAPH_TENANT_ID: Azure AD Tenant ID
    - MSGRAPH_CLIENT_ID: Azure AD Application (Client) ID
    - MSGRAPH_CLIENT_SECRET: Azure AD Client Secret
    - MSGRAPH_SENDER_EMAIL: Email address to send from (must have mailbox)
    """

    GRAPH_TOKEN_URL = "https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"
    GRAPH_SEND_MAIL_URL = "https://graph.microsoft.com/v1.0/users/{sender}/sendMail"

    def __init__(self, tenant_id: str = "", client_id: str = "",
                 client_secret: str = "", sender_email: str = ""):
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.sender_email = sender_email

        self.is_configured = all([
            self.tenant_id,
            self.client_id,
            self.client_secret,
            self.sender_email
        ])

        if not self.is_configured:
            logger.warning(
                "Email service not configured. Set MSGRAPH_TENANT_ID, MSGRAPH_CLIENT_ID, "
                "MSGRAPH_CLIENT_SECRET, and MSGRAPH_SENDER_EMAIL. Notifications will be logged to console."
            )

        # Cache for access token
        self._access_token: Optional[str] = None
        self._token_expires_at: float = 0

    async def _get_access_token(self) -> Optional[str]:
        """
        Get Microsoft Graph API access token using client credentials flow.
        Caches the token until it expires.
        """
        # Return cached token if still valid (with 5 minute buffer)
        if self._access_token and time.time() < (self._token_expires_at - 300):
            return self._access_token

        token_url = self.GRAPH_TOKEN_URL.format(tenant_id=self.tenant_id)

        data = {
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'scope': 'https://graph.microsoft.com/.default',
            'grant_type': 'client_credentials'
        }

        async with aiohttp.ClientSession() as session:
            async with session.post(token_url, data=data) as response:
                if response.status != 200:
                    error_text = await response.text()
                    logger.error(f"Failed to get Graph access token: {response.status} - {error_text}")
                    return None

                token_data = await response.json()
                self._access_token = token_data.get('access_token')
                expires_in = token_data.get('expires_in', 3600)
                self._token_expires_at = time.time() + expires_in

                logger.debug("Obtained new Microsoft Graph access token")
                return self._access_token

    async def send_email_async(self, to_email: str, subject: str, body_text: str) -> bool:
        """
        Send a plain-text email via Microsoft Graph API.

        Args:
            to_email: Recipient email address
            subject: Email subject
            body_text: Plain text body

        Returns:
            True if sent successfully

        Raises:
            aiohttp.ClientError: On transport failures
        """
        if not self.is_configured:
            logger.info(f"[EMAIL NOT CONFIGURED] Would send to {to_email}: {subject}")
            logger.info(f"[EMAIL BODY] {body_text[:200]}")
            return False

        access_token = await self._get_access_token()
        if not access_token:
            logger.error("Cannot send email: Failed to obtain access token")
            return False

        send_mail_url = self.GRAPH_SEND_MAIL_URL.format(sender=self.sender_email)

        mail_body = {
            "message": {
                "subject": subject,
                "body": {
                    "contentType": "Text",
                    "content": body_text
                },
                "toRecipients": [
                    {
                        "emailAddress": {
                            "address": to_email
                        }
                    }
                ]
            },
            "saveToSentItems": "true"
        }

        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json"
        }

        async with aiohttp.ClientSession() as session:
            async with session.post(send_mail_url, json=mail_body, headers=headers) as response:
                if response.status == 202:
                    logger.info(f"Email sent: {subject}")
                    return True

                error_text = await response.text()
                logger.error(f"Failed to send email via Graph: {response.status} - {error_text}")
                return False


def create_email_service(config: dict) -> EmailService:
    """
    Factory function to create the email service from config

    Args:
        config: Configuration dictionary (from Settings)

    Returns:
        EmailService
    """
    return EmailService(
        tenant_id=config.get("msgraph_tenant_id", ""),
        client_id=config.get("msgraph_client_id", ""),
        client_secret=config.get("msgraph_client_secret", ""),
        sender_email=config.get("msgraph_sender_email", ""),
    )
