# guest_communications/notifier.py
from collections import defaultdict
from typing import Any, Dict, Optional

from .sms_client import SMSClient
from .email_client import EmailClient
from ..utils.logger import get_logger

# template name -> (email subject, body); bodies are also used for SMS
TEMPLATES = {
    "booking_created": (
        "Booking confirmed - {asset_name}",
        "Hi {customer_name},\n\n"
        "Your booking of {asset_name} is confirmed.\n"
        "From: {start}\n"
        "To: {end}\n"
        "Total: {total}\n\n"
        "Reference: {reservation_id}",
    ),
    "booking_cancelled": (
        "Booking cancelled - {asset_name}",
        "Hi {customer_name},\n\n"
        "Your booking of {asset_name} from {start} to {end} has been cancelled.\n\n"
        "Reference: {reservation_id}",
    ),
}


class Notifier:
    """Best-effort templated messages; a failed send is logged and reported, never raised."""

    def __init__(self, email_client: Optional[EmailClient] = None, sms_client: Optional[SMSClient] = None):
        self._email = email_client
        self._sms = sms_client
        self.logger = get_logger("notifier")

    @property
    def email(self) -> EmailClient:
        if self._email is None:
            self._email = EmailClient()
        return self._email

    @property
    def sms(self) -> SMSClient:
        if self._sms is None:
            self._sms = SMSClient()
        return self._sms

    @staticmethod
    def render(template: str, data: Dict[str, Any]):
        if template not in TEMPLATES:
            raise KeyError(f"Unknown notification template: {template}")
        subject, body = TEMPLATES[template]
        # Missing placeholders render empty rather than failing the send
        values = defaultdict(str, {k: "" if v is None else v for k, v in (data or {}).items()})
        return subject.format_map(values), body.format_map(values)

    def send(self, template: str, recipient: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Send ``template`` to an email address or phone number.

        Returns:
            ``{"ok": True}`` on success, ``{"ok": False, "error": ...}`` otherwise
        """
        try:
            if not recipient:
                raise ValueError("recipient is required")
            subject, body = self.render(template, data)
            if "@" in recipient:
                self.email.send(to=recipient, subject=subject, body=body)
                channel = "email"
            else:
                self.sms.send(to=recipient, body=body)
                channel = "sms"
            self.logger.info("notification_sent", template=template, channel=channel,
                             reservation_id=(data or {}).get("reservation_id"))
            return {"ok": True}
        except Exception as e:
            self.logger.error("notification_failed", template=template, recipient=recipient, error=str(e))
            return {"ok": False, "error": str(e)}
