"""
Server-side contact form handler.

Validates a submitted form, composes the notification email from the
``contact_form`` and ``email`` settings, and hands it to the configured HTTP
email API.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import requests

from .config import SiteConfig

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
HONEYPOT_FIELD = 'website'
MAX_MESSAGE_LENGTH = 5000
REQUEST_TIMEOUT = 10


@dataclass
class ContactResult:
    ok: bool
    status: int
    message: str
    errors: Dict[str, str] = field(default_factory=dict)


class ContactFormHandler:
    """Handle contact form submissions for a site."""

    def __init__(self, config: SiteConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.logger = logging.getLogger('SMBSite.contact')

    @property
    def enabled(self) -> bool:
        return self.config.features.contact_form and self.config.contact_form.enabled

    def validate(self, form: Mapping[str, Any]) -> Dict[str, str]:
        """Return a mapping of field name to error message; empty when valid."""
        errors = {}
        name = str(form.get('name') or '').strip()
        email = str(form.get('email') or '').strip()
        message = str(form.get('message') or '').strip()

        if not name:
            errors['name'] = 'Please enter your name.'
        if not email:
            errors['email'] = 'Please enter your email address.'
        elif not EMAIL_PATTERN.match(email):
            errors['email'] = 'Please enter a valid email address.'
        if not message:
            errors['message'] = 'Please enter a message.'
        elif len(message) > MAX_MESSAGE_LENGTH:
            errors['message'] = f'Messages are limited to {MAX_MESSAGE_LENGTH} characters.'
        return errors

    def compose(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        """Build the email API payload for a valid submission."""
        settings = self.config.contact_form
        name = str(form.get('name')).strip()
        email = str(form.get('email')).strip()
        phone = str(form.get('phone') or '').strip()
        message = str(form.get('message')).strip()

        lines = [f'Name: {name}', f'Email: {email}']
        if phone:
            lines.append(f'Phone: {phone}')
        lines.extend(['', message])

        return {
            'from': self.config.email.from_email or f'{self.config.name} <{settings.recipient_email}>',
            'to': [settings.recipient_email],
            'reply_to': email,
            'subject': f'{settings.subject_prefix} New message from {name}',
            'text': '\n'.join(lines),
        }

    def send(self, payload: Dict[str, Any]) -> bool:
        """POST the payload to the email API. Returns True on success."""
        email_settings = self.config.email
        if not email_settings.api_key:
            self.logger.error("Email API key is not configured; cannot deliver contact form message")
            return False

        try:
            response = self.session.post(
                email_settings.api_url,
                json=payload,
                headers={'Authorization': f'Bearer {email_settings.api_key}'},
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Failed to deliver contact form message via {email_settings.provider}: {e}")
            return False

        self.logger.info(f"Contact form message delivered to {payload['to'][0]}")
        return True

    def handle(self, form: Mapping[str, Any]) -> ContactResult:
        """Validate, compose and deliver a contact form submission."""
        if not self.enabled:
            return ContactResult(ok=False, status=404, message='The contact form is not available.')

        # Bots fill every field; pretend success so they don't retry.
        if str(form.get(HONEYPOT_FIELD) or '').strip():
            self.logger.info("Contact form honeypot triggered, discarding submission")
            return ContactResult(ok=True, status=200, message=self.config.contact_form.success_message)

        errors = self.validate(form)
        if errors:
            return ContactResult(ok=False, status=400, message='Please correct the highlighted fields.', errors=errors)

        if not self.config.contact_form.recipient_email:
            self.logger.error("No recipient email configured for the contact form")
            return ContactResult(ok=False, status=500, message='The contact form is not configured.')

        if not self.send(self.compose(form)):
            return ContactResult(ok=False, status=502,
                                 message='Sorry, your message could not be sent. Please call or email us instead.')

        return ContactResult(ok=True, status=200, message=self.config.contact_form.success_message)
