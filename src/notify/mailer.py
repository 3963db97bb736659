"""Mail dispatchers for job-match email alerts.

Recipient lists are delivered in chunks of ``batch_size`` to stay under
provider per-send limits. A failed chunk is recorded in the report and the
remaining chunks are still attempted.
"""

import logging
import os
import smtplib
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from pydantic import BaseModel, Field

from src.core.schemas import JobPosting
from src.notify.messages import render_email_body, render_email_subject

logger = logging.getLogger(__name__)


class SendReport(BaseModel):
    """Outcome of sending one job alert to a recipient list."""

    sent_count: int = 0
    total_count: int = 0
    failed_emails: list[str] = Field(default_factory=list)


class MailDispatcher(ABC):
    """Base class that every mail transport must implement."""

    def __init__(self, batch_size: int = 500) -> None:
        if batch_size < 1:
            msg = "batch_size must be >= 1"
            raise ValueError(msg)
        self._batch_size = batch_size

    @property
    @abstractmethod
    def transport_id(self) -> str:
        """Unique identifier for this transport (e.g. 'smtp')."""

    @abstractmethod
    def deliver(self, job: JobPosting, recipients: list[str]) -> None:
        """Send one chunk of recipients. Raise on failure."""

    def send_batch(self, job: JobPosting, recipients: list[str]) -> SendReport:
        """Send the job alert to every recipient, chunked by batch size."""
        emails = [e for e in dict.fromkeys(r.strip() for r in recipients) if e]
        report = SendReport(total_count=len(emails))
        for start in range(0, len(emails), self._batch_size):
            chunk = emails[start:start + self._batch_size]
            try:
                self.deliver(job, chunk)
            except Exception:
                logger.warning(
                    "%s: failed to send chunk of %d for job '%s'",
                    self.transport_id, len(chunk), job.id,
                    exc_info=True,
                )
                report.failed_emails.extend(chunk)
                continue
            report.sent_count += len(chunk)
        logger.info(
            "Job alert '%s': %d/%d sent via %s",
            job.id, report.sent_count, report.total_count, self.transport_id,
        )
        return report


class LogMailer(MailDispatcher):
    """Records deliveries in memory and the log instead of sending anything."""

    def __init__(self, batch_size: int = 500) -> None:
        super().__init__(batch_size)
        self.deliveries: list[tuple[str, list[str]]] = []

    @property
    def transport_id(self) -> str:
        return "log"

    def deliver(self, job: JobPosting, recipients: list[str]) -> None:
        self.deliveries.append((job.id, list(recipients)))
        logger.info("[DRY RUN] Would email %d recipients about '%s'", len(recipients), job.title)


class SmtpMailer(MailDispatcher):
    """Sends alerts over SMTP with recipients in Bcc.

    Reads SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD and FROM_EMAIL.
    """

    def __init__(self, batch_size: int = 500) -> None:
        super().__init__(batch_size)
        self._host = os.environ.get("SMTP_HOST", "").strip()
        port_str = os.environ.get("SMTP_PORT", "587").strip()
        self._user = os.environ.get("SMTP_USER", "").strip()
        self._password = os.environ.get("SMTP_PASSWORD", "").strip()
        self._from = os.environ.get("FROM_EMAIL", self._user).strip()
        if not all([self._host, self._user, self._password]):
            msg = "SMTP not configured (set SMTP_HOST, SMTP_USER, SMTP_PASSWORD)"
            raise ValueError(msg)
        try:
            self._port = int(port_str)
        except ValueError:
            self._port = 587

    @property
    def transport_id(self) -> str:
        return "smtp"

    def deliver(self, job: JobPosting, recipients: list[str]) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = render_email_subject(job)
        msg["From"] = self._from
        msg["To"] = self._from
        msg.attach(MIMEText(render_email_body(job), "plain", "utf-8"))
        with smtplib.SMTP(self._host, self._port, timeout=30) as server:
            server.starttls()
            server.login(self._user, self._password)
            server.sendmail(self._from, recipients, msg.as_string())
