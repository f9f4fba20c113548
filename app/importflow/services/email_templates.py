from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from html import escape

from app.importflow.core.config import settings
from app.importflow.db.models import Shipment

EVENT_LABELS = {
    "shipment_arrival": "Shipment Arrivals",
    "inspection_failed": "Failed Inspections",
    "inspection_passed": "Passed Inspections",
    "warehouse_capacity": "Warehouse Capacity Alerts",
    "delayed_shipment": "Delayed Shipments",
    "post_arrival_update": "Post-Arrival Updates",
    "workflow_assigned": "Workflow Assignments",
}

EVENT_SUBJECTS = {
    "shipment_arrival": "Shipment Arrived",
    "inspection_failed": "Inspection Failed",
    "inspection_passed": "Inspection Passed",
    "warehouse_capacity": "Warehouse Capacity Alert",
    "delayed_shipment": "Shipment Delayed",
    "post_arrival_update": "Shipment Update",
    "workflow_assigned": "Workflow Assigned",
}


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


def format_event_label(event_type: str) -> str:
    return EVENT_LABELS.get(event_type) or event_type.replace("_", " ").title()


def shipment_link(shipment_id: str, base_url: str | None = None) -> str:
    base = (base_url or settings.APP_BASE_URL).rstrip("/")
    return f"{base}/shipments/{shipment_id}"


def render_event_email(
    event_type: str,
    event_data: dict | None,
    shipment: Shipment | None,
    *,
    base_url: str | None = None,
) -> RenderedEmail:
    data = event_data or {}
    title = EVENT_SUBJECTS.get(event_type) or format_event_label(event_type)
    if shipment is not None:
        subject = f"{title}: {shipment.order_ref}"
    elif data.get("warehouse"):
        subject = f"{title}: {data['warehouse']}"
    else:
        subject = title

    lines = []
    if shipment is not None:
        lines.extend(
            [
                ("Order ref", shipment.order_ref),
                ("Supplier", shipment.supplier),
                ("Status", shipment.status),
            ]
        )
    for key in sorted(data):
        lines.append((key.replace("_", " ").capitalize(), data[key]))

    rows = "".join(
        f"<tr><th align=\"left\">{escape(str(label))}</th><td>{escape(str(value))}</td></tr>" for label, value in lines
    )
    link = ""
    if shipment is not None:
        url = shipment_link(shipment.id, base_url)
        link = f"<p><a href=\"{escape(url)}\">View shipment</a></p>"
    html = f"<h2>{escape(subject)}</h2><table>{rows}</table>{link}"
    text = "\n".join([subject, ""] + [f"{label}: {value}" for label, value in lines])
    return RenderedEmail(subject=subject, html=html, text=text)


def render_digest_email(
    period: str,
    counts: list[tuple[str, int]],
    shipments: list[tuple[Shipment | None, str, int]],
    *,
    username: str | None,
    generated_at: datetime,
    base_url: str | None = None,
) -> RenderedEmail:
    """Render one digest summarizing grouped event counts.

    ``shipments`` holds ``(shipment, shipment_id, event_count)`` tuples; the
    shipment may be missing when it was deleted after the event was queued.
    """
    label = "Daily" if period == "daily" else "Weekly"
    subject = f"{label} Notification Summary - {generated_at.date().isoformat()}"
    total = sum(count for _, count in counts)
    greeting = f"Hello {username}," if username else "Hello,"

    count_rows = "".join(
        f"<li>{escape(format_event_label(event_type))}: <strong>{count}</strong></li>" for event_type, count in counts
    )
    shipment_rows = []
    text_shipments = []
    for shipment, shipment_id, count in shipments:
        name = f"{shipment.order_ref} ({shipment.supplier})" if shipment is not None else shipment_id
        url = shipment_link(shipment_id, base_url)
        shipment_rows.append(f"<li><a href=\"{escape(url)}\">{escape(name)}</a>: {count} events</li>")
        text_shipments.append(f"- {name}: {count} events ({url})")

    html = (
        f"<h2>{escape(subject)}</h2>"
        f"<p>{escape(greeting)}</p>"
        f"<p>You have {total} new notifications.</p>"
        f"<ul>{count_rows}</ul>"
    )
    if shipment_rows:
        html += f"<h3>Most active shipments</h3><ul>{''.join(shipment_rows)}</ul>"

    text_lines = [subject, "", greeting, f"You have {total} new notifications.", ""]
    text_lines.extend(f"- {format_event_label(event_type)}: {count}" for event_type, count in counts)
    if text_shipments:
        text_lines.extend(["", "Most active shipments:"] + text_shipments)
    return RenderedEmail(subject=subject, html=html, text="\n".join(text_lines))
