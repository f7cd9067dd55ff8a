"""
Notification Service
Creates in-app notifications for scheduling and enrollment events and builds
the matching emails. Notification rows are written inside the request; emails
are delivered afterwards (background task) so a mail outage never fails the
business operation.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..config import ADMIN_NOTIFICATION_EMAIL
from ..email_templates import (
    DAY_NAMES,
    admin_enrollment_template,
    enrollment_welcome_template,
    schedule_published_template,
    slots_published_template,
)
from ..models import Enrollment, Notification, RecurringSchedule, User
from ..shared.errors import NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    to: str
    subject: str
    mjml_content: str


@dataclass
class NotificationDispatch:
    """What an event produced: stored notifications plus emails still to deliver"""

    notifications: list[Notification] = field(default_factory=list)
    emails: list[EmailMessage] = field(default_factory=list)


async def deliver_emails(messages: list[EmailMessage]) -> dict:
    """
    Send each email independently; one failing recipient never stops the rest.

    Returns:
        Dict with sent/failed counts and the per-recipient errors
    """
    from ..email_service import send_email

    result = {"sent": 0, "failed": 0, "errors": []}

    for message in messages:
        try:
            await send_email(
                to=message.to, subject=message.subject, mjml_content=message.mjml_content
            )
            result["sent"] += 1
        except Exception as e:
            result["failed"] += 1
            result["errors"].append(f"{message.to}: {e}")
            logger.error(f"❌ Failed to send '{message.subject}' to {message.to}: {e}")

    if messages:
        logger.info(f"📧 Email fan-out finished: {result['sent']} sent, {result['failed']} failed")
    return result


def _enrolled_users(db: Session, category: str) -> list[User]:
    return (
        db.query(User)
        .join(Enrollment, Enrollment.user_id == User.id)
        .filter(Enrollment.category == category, Enrollment.is_active.is_(True))
        .order_by(User.id.asc())
        .all()
    )


def _save(db: Session, *notifications: Notification) -> None:
    db.add_all(notifications)
    db.commit()
    for notification in notifications:
        db.refresh(notification)


def notify_schedule_published(db: Session, schedule: RecurringSchedule) -> NotificationDispatch:
    """Announce a new recurring schedule to everyone enrolled in its category"""
    schedule_name = schedule.title or schedule.category
    day_name = DAY_NAMES[schedule.day_of_week]

    notification = Notification(
        title=f"📅 New schedule: {schedule_name}"[:100],
        message=(
            f"A new schedule was added for {schedule_name}: {day_name}s "
            f"{schedule.start_time} - {schedule.end_time}. Reserve your place now!"
        ),
        type="actualizacion",
        priority="alta",
        target_users="suscriptores",
        category=schedule.category,
        icon="📅",
        action_url=f"/entrenamientos/{schedule.category.lower()}",
        action_text="Reserve a Place",
        is_automatic=True,
        created_by="admin",
        metadata_json={
            "scheduleId": schedule.id,
            "dayOfWeek": schedule.day_of_week,
            "startTime": schedule.start_time,
            "endTime": schedule.end_time,
        },
    )
    _save(db, notification)

    users = _enrolled_users(db, schedule.category)
    logger.info(
        f"👥 Schedule {schedule.id} announced; {len(users)} enrolled users in {schedule.category}"
    )

    emails = [
        EmailMessage(
            to=user.email,
            subject=f"📅 New schedule available: {schedule_name} - {day_name}s {schedule.start_time}",
            mjml_content=schedule_published_template(
                user.full_name or user.email,
                schedule_name,
                schedule.day_of_week,
                schedule.start_time,
                schedule.end_time,
                schedule.category,
            ),
        )
        for user in users
    ]
    return NotificationDispatch(notifications=[notification], emails=emails)


def notify_slots_published(
    db: Session, category: str, created: int, first_date: str, last_date: str
) -> NotificationDispatch:
    """Announce a bulk slot publication; nothing is sent when no slot was created"""
    if created <= 0:
        return NotificationDispatch()

    notification = Notification(
        title=f"🗓️ {created} new {category} sessions"[:100],
        message=f"{created} new {category} sessions are open for booking between {first_date} and {last_date}.",
        type="novedad",
        priority="media",
        target_users="suscriptores",
        category=category,
        icon="🗓️",
        action_url=f"/asesorias/{category.lower()}",
        action_text="See Available Times",
        is_automatic=True,
        created_by="admin",
        metadata_json={"created": created, "firstDate": first_date, "lastDate": last_date},
    )
    _save(db, notification)

    emails = [
        EmailMessage(
            to=user.email,
            subject=f"🗓️ New {category} sessions available",
            mjml_content=slots_published_template(
                user.full_name or user.email, category, created, first_date, last_date
            ),
        )
        for user in _enrolled_users(db, category)
    ]
    return NotificationDispatch(notifications=[notification], emails=emails)


def notify_enrollment_created(db: Session, enrollment: Enrollment, user: User) -> NotificationDispatch:
    """Welcome the user and tell the admins about a new enrollment"""
    training_name = enrollment.training_name or enrollment.category
    user_name = user.full_name or user.email

    user_notification = Notification(
        title=f"🎓 Welcome to {training_name}!"[:100],
        message=(
            f"Your enrollment in {training_name} has been confirmed. "
            "You now have full access to the content and the live classes."
        ),
        type="novedad",
        priority="alta",
        target_users="usuario",
        recipient_user_id=user.id,
        category=enrollment.category,
        icon="🎓",
        action_url=f"/entrenamientos/{enrollment.category.lower()}/lecciones",
        action_text="Start Training",
        is_automatic=True,
        created_by="sistema",
        metadata_json={"enrollmentId": enrollment.id, "price": enrollment.price},
    )
    admin_notification = Notification(
        title=f"🎓 New enrollment: {training_name}"[:100],
        message=f"{user_name} ({user.email}) enrolled in {training_name}.",
        type="sistema",
        priority="media",
        target_users="admin",
        category=enrollment.category,
        icon="👤",
        action_url="/admin/users",
        action_text="View User",
        is_automatic=True,
        created_by="sistema",
        metadata_json={"enrollmentId": enrollment.id, "userEmail": user.email},
    )
    _save(db, user_notification, admin_notification)

    emails = [
        EmailMessage(
            to=user.email,
            subject=f"🎓 Welcome to {training_name}!",
            mjml_content=enrollment_welcome_template(user_name, training_name, enrollment.category),
        )
    ]
    if ADMIN_NOTIFICATION_EMAIL:
        emails.append(
            EmailMessage(
                to=ADMIN_NOTIFICATION_EMAIL,
                subject=f"New enrollment: {training_name} - {user.email}",
                mjml_content=admin_enrollment_template(
                    user_name, user.email, training_name, enrollment.price
                ),
            )
        )

    return NotificationDispatch(notifications=[user_notification, admin_notification], emails=emails)


def _visible_to(db: Session, user: User):
    """Filter matching the active notifications a user is allowed to see"""
    enrolled_categories = [
        e.category
        for e in db.query(Enrollment)
        .filter(Enrollment.user_id == user.id, Enrollment.is_active.is_(True))
        .all()
    ]

    visible = [
        Notification.target_users == "todos",
        and_(Notification.target_users == "usuario", Notification.recipient_user_id == user.id),
    ]
    if enrolled_categories:
        visible.append(
            and_(
                Notification.target_users == "suscriptores",
                or_(
                    Notification.category.is_(None),
                    Notification.category.in_(enrolled_categories),
                ),
            )
        )
    if user.is_admin:
        visible.append(Notification.target_users == "admin")

    return and_(Notification.is_active.is_(True), or_(*visible))


def list_for_user(db: Session, user: User, limit: int = 50) -> list[Notification]:
    """Active notifications visible to the user, newest first"""
    return (
        db.query(Notification)
        .filter(_visible_to(db, user))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def mark_read(db: Session, notification_id: int, user: User) -> Notification:
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, _visible_to(db, user))
        .first()
    )
    if not notification:
        raise NotFoundError("Notification not found")

    read_by = notification.read_by or []
    if user.id not in read_by:
        # Reassign so SQLAlchemy detects the JSON change
        notification.read_by = [*read_by, user.id]
        db.commit()
        db.refresh(notification)

    return notification
