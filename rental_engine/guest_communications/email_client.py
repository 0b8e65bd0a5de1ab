# guest_communications/email_client.py
import smtplib
from email.mime.text import MIMEText

from config.settings import notification_config
from ..utils.logger import get_logger


class EmailClient:
    def __init__(self):
        self.smtp_server = notification_config.smtp_server
        self.smtp_port = notification_config.smtp_port
        self.username = notification_config.smtp_user
        self.password = notification_config.smtp_password
        self.logger = get_logger("email_client")

    def send(self, to: str, subject: str, body: str):
        msg = MIMEText(body, "plain")
        msg["Subject"] = subject
        msg["From"] = self.username
        msg["To"] = to

        with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
            server.starttls()
            server.login(self.username, self.password)
            server.sendmail(self.username, [to], msg.as_string())
        self.logger.info("email_sent", to=to, subject=subject)
