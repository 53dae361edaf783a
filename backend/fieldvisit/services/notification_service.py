# Overview: Emails a visit report to the branch recipients and records the dispatch.

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError
from ..extensions import db
from ..models import Branch, Recipient
from ..validation import is_valid_email
from . import mail_service, report_service, visit_service


REPORT_SUBJECT = "Field visit report #{visit_id}"
REPORT_BODY = (
    "Hello,\n\n"
    "Please find attached the report for field visit #{visit_id}.\n\n"
    "Regards,\n"
    "{organization_name}\n"
)


def eligible_recipients(branch_id: int) -> list[str]:
    """Opted-in recipient addresses for a branch, de-duplicated, in id order."""
    rows = (
        db.session.query(Recipient)
        .filter(Recipient.branch_id == branch_id, Recipient.notify_email.is_(True))
        .order_by(Recipient.id.asc())
        .all()
    )
    seen = set()
    emails = []
    for row in rows:
        if not is_valid_email(row.email):
            continue
        email = row.email.strip()
        if email.lower() in seen:
            continue
        seen.add(email.lower())
        emails.append(email)
    return emails


def send_report(visit_id: int) -> dict:
    """
    Email the visit report to its branch and mark the visit sent.

    One message goes to all eligible recipients together. With no eligible
    recipients nothing is dispatched, but the visit is still marked sent.

    Returns:
        {"emails_sent": <number of recipients targeted>}

    Raises:
        NotFoundError: visit or its branch cannot be resolved
        DeliveryError: the mail transport failed (visit stays unsent)
    """
    visit = visit_service.get_visit(visit_id)
    branch = db.session.query(Branch).filter_by(id=visit.branch_id).first()
    if not branch:
        raise NotFoundError(f"Branch for visit {visit_id} not found")

    # A rejected transition must not email anyone
    visit_service.ensure_transition(visit, visit_service.VISIT_STATUS_SENT)

    recipients = eligible_recipients(branch.id)

    if recipients:
        organization_name = current_app.config["ORGANIZATION_NAME"]
        pdf = report_service.build_report(visit_id)
        message = mail_service.build_message(
            recipients=recipients,
            subject=REPORT_SUBJECT.format(visit_id=visit_id),
            body=REPORT_BODY.format(visit_id=visit_id, organization_name=organization_name),
            attachment=pdf,
            attachment_name=f"visit-{visit_id}.pdf",
        )
        mail_service.send_message(message)
        current_app.logger.info("Report for visit %s sent to %d recipients", visit_id, len(recipients))
    else:
        current_app.logger.info("Report for visit %s has no eligible recipients", visit_id)

    visit_service.mark_sent(visit_id)
    return {"emails_sent": len(recipients)}
