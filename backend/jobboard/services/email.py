"""Email notifications for applications."""
import html
import logging

from starlette.concurrency import run_in_threadpool

from jobboard.config import settings

logger = logging.getLogger(__name__)

_CARD = (
    '<html><body style="font-family: Arial, sans-serif; background-color: #f4f4f4; padding: 20px;">'
    '<div style="max-width: 600px; margin: 0 auto; background-color: white; padding: 40px; border-radius: 8px;">'
    "{body}"
    "</div></body></html>"
)

STATUS_HEADLINES = {
    "reviewing": "Your application is being reviewed",
    "shortlisted": "You've been shortlisted",
    "interview": "You've been invited to interview",
    "offered": "You've received an offer",
    "rejected": "An update on your application",
}


class EmailService:
    """Handles email sending in dev and production modes."""

    def __init__(self):
        self.mode = settings.email_mode
        if self.mode == "prod":
            try:
                from sendgrid import SendGridAPIClient
                self.sendgrid_client = SendGridAPIClient(settings.sendgrid_api_key)
            except ImportError:
                logger.error("SendGrid not installed but email_mode is 'prod'")
                raise
        else:
            self.sendgrid_client = None

    async def send_new_application_email(
        self,
        email: str,
        job_title: str,
        applicant_name: str,
        application_id: str,
    ) -> bool:
        """Tell the job's application inbox that someone applied."""
        subject = f"New application: {job_title}"
        link = f"{settings.get_frontend_url()}/employer/applications/{application_id}"
        safe_title, safe_name = html.escape(job_title), html.escape(applicant_name)

        html_content = _CARD.format(body=(
            f'<h2 style="color: #333;">New application for {safe_title}</h2>'
            f'<p style="color: #666; font-size: 16px;"><strong>{safe_name}</strong> just applied.</p>'
            f'<p><a href="{link}">Review the application</a></p>'
        ))
        text_content = f"{applicant_name} applied to {job_title}.\n\nReview it here: {link}\n"

        return await self._send_email(email, subject, text_content, html_content)

    async def send_application_status_email(
        self,
        email: str,
        job_title: str,
        company_name: str,
        status: str,
    ) -> bool:
        """Tell the applicant their application moved to a new stage."""
        headline = STATUS_HEADLINES.get(status, "Your application was updated")
        subject = f"{headline}: {job_title} at {company_name}"
        link = f"{settings.get_frontend_url()}/applications"
        safe_title, safe_company = html.escape(job_title), html.escape(company_name)

        html_content = _CARD.format(body=(
            f'<h2 style="color: #333;">{headline}</h2>'
            f'<p style="color: #666; font-size: 16px;">Your application for <strong>{safe_title}</strong> '
            f"at <strong>{safe_company}</strong> is now <strong>{status}</strong>.</p>"
            f'<p><a href="{link}">View your applications</a></p>'
        ))
        text_content = (
            f"{headline}\n\nYour application for {job_title} at {company_name} is now {status}.\n\n{link}\n"
        )

        return await self._send_email(email, subject, text_content, html_content)

    async def _send_email(self, to_email: str, subject: str, text_content: str, html_content: str) -> bool:
        """Send via SendGrid, or log the message in dev mode. Never raises."""
        if self.mode == "dev":
            logger.info(f"[DEV MODE] Email to {to_email}: {subject}")
            logger.info(f"[DEV MODE] Content:\n{text_content}")
            return True

        try:
            from sendgrid.helpers.mail import Mail, Email, To, Content

            mail = Mail(
                from_email=Email(settings.email_from, "Web3 Jobs"),
                to_emails=To(to_email),
                subject=subject,
                plain_text_content=Content("text/plain", text_content),
                html_content=Content("text/html", html_content)
            )

            response = await run_in_threadpool(self.sendgrid_client.send, mail)

            if 200 <= response.status_code < 300:
                logger.info(f"Email sent to {to_email}: {subject}")
                return True
            logger.error(f"Failed to send email to {to_email}: {response.status_code}")
            return False
        except Exception as e:
            logger.error(f"Error sending email to {to_email}: {str(e)}")
            return False


# Global email service instance
email_service = EmailService()
