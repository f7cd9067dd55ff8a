"""
MJML Email Templates
Email templates for schedule, slot and enrollment announcements
"""

from html import escape
from typing import Optional

from .config import FRONTEND_URL

# App theme colors - Navy/Gold color scheme
THEME = {
    "primary": "#1e3a8a",
    "accent": "#f59e0b",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['card_bg']}" padding="40px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              You're receiving this because you have an account with Trading Academy.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def schedule_published_template(
    user_name: str, schedule_name: str, day_of_week: int, start_time: str, end_time: str, category: str
) -> str:
    """New recurring schedule for a training the user is enrolled in"""
    day_name = DAY_NAMES[day_of_week]
    content = f"""
    <mj-text>
      Hi {escape(user_name)},
    </mj-text>

    <mj-text>
      A new schedule was added for <strong>{escape(schedule_name)}</strong>:
    </mj-text>

    <mj-text font-size="18px" color="{THEME['text_primary']}" padding="8px 0 8px 20px">
      Every {day_name}, {start_time} - {end_time}
    </mj-text>

    <mj-text color="{THEME['text_muted']}" font-size="14px">
      Places are limited, reserve yours early.
    </mj-text>
    """

    return get_base_template(
        title=f"New schedule: {escape(schedule_name)}",
        preview_text=f"{day_name}s at {start_time}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/entrenamientos/{category.lower()}",
        cta_label="Reserve a Place",
    )


def slots_published_template(
    user_name: str, category: str, slot_count: int, first_date: str, last_date: str
) -> str:
    """New bookable slots were published for a category"""
    content = f"""
    <mj-text>
      Hi {escape(user_name)},
    </mj-text>

    <mj-text>
      <strong>{slot_count}</strong> new {escape(category)} sessions are open for booking
      between {first_date} and {last_date}.
    </mj-text>
    """

    return get_base_template(
        title="New sessions available",
        preview_text=f"{slot_count} new {category} sessions",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/asesorias/{category.lower()}",
        cta_label="See Available Times",
    )


def enrollment_welcome_template(user_name: str, training_name: str, category: str) -> str:
    """Welcome email sent when an enrollment is registered"""
    content = f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 24px 0">
      Your enrollment has been confirmed.
    </mj-text>

    <mj-text>
      Hi {escape(user_name)},
    </mj-text>

    <mj-text>
      Welcome to <strong>{escape(training_name)}</strong>! You now have full access to the
      course content and the live classes.
    </mj-text>
    """

    return get_base_template(
        title=f"Welcome to {escape(training_name)}!",
        preview_text="Your enrollment has been confirmed",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/entrenamientos/{category.lower()}/lecciones",
        cta_label="Start Training",
    )


def admin_enrollment_template(
    user_name: str, user_email: str, training_name: str, price: Optional[float]
) -> str:
    """Admin copy of a new enrollment"""
    price_line = f"${price:,.2f}" if price is not None else "N/A"
    content = f"""
    <mj-text>
      <strong>{escape(user_name)}</strong> ({escape(user_email)}) enrolled in
      <strong>{escape(training_name)}</strong>.
    </mj-text>

    <mj-text color="{THEME['text_muted']}" font-size="14px">
      Price: {price_line}
    </mj-text>
    """

    return get_base_template(
        title=f"New enrollment: {escape(training_name)}",
        preview_text=f"{user_email} enrolled in {training_name}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/admin/users",
        cta_label="View User",
    )
