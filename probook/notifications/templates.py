from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from probook.core.enums import NotificationEvent


@dataclass(frozen=True)
class NotificationTemplate:
    event: NotificationEvent
    subject: str
    body_template: str
    html_template: str


_DEFAULT_PROVIDER_NAME = "el profesional"

# Client templates
BOOKING_CREATED = NotificationTemplate(
    event=NotificationEvent.BOOKING_CREATED,
    subject="Tu reserva fue creada",
    body_template=(
        "Tu reserva #{display_id} con {provider_name} fue creada exitosamente. "
        "Te avisaremos cuando la acepte."
    ),
    html_template=(
        "<p>Tu reserva <strong>#{display_id}</strong> con <strong>{provider_name}</strong> "
        "fue creada exitosamente.</p><p>Te avisaremos cuando la acepte.</p>"
    ),
)

BOOKING_ACCEPTED = NotificationTemplate(
    event=NotificationEvent.BOOKING_ACCEPTED,
    subject="Tu reserva fue aceptada",
    body_template="{provider_name} aceptó tu reserva #{display_id} para el {scheduled_local}.",
    html_template=(
        "<p><strong>{provider_name}</strong> aceptó tu reserva "
        "<strong>#{display_id}</strong> para el {scheduled_local}.</p>"
    ),
)

BOOKING_REJECTED = NotificationTemplate(
    event=NotificationEvent.BOOKING_REJECTED,
    subject="Tu reserva fue rechazada",
    body_template=(
        "{provider_name} no puede tomar tu reserva #{display_id}. "
        "Podés elegir otro profesional."
    ),
    html_template=(
        "<p><strong>{provider_name}</strong> no puede tomar tu reserva "
        "<strong>#{display_id}</strong>.</p><p>Podés elegir otro profesional.</p>"
    ),
)

BOOKING_ON_MY_WAY = NotificationTemplate(
    event=NotificationEvent.BOOKING_ON_MY_WAY,
    subject="El profesional está en camino",
    body_template="{provider_name} está en camino para tu reserva #{display_id}.",
    html_template=(
        "<p><strong>{provider_name}</strong> está en camino para tu reserva "
        "<strong>#{display_id}</strong>.</p>"
    ),
)

BOOKING_ARRIVED = NotificationTemplate(
    event=NotificationEvent.BOOKING_ARRIVED,
    subject="El profesional llegó",
    body_template="{provider_name} llegó a {address} para tu reserva #{display_id}.",
    html_template=(
        "<p><strong>{provider_name}</strong> llegó a {address} para tu reserva "
        "<strong>#{display_id}</strong>.</p>"
    ),
)

BOOKING_COMPLETED = NotificationTemplate(
    event=NotificationEvent.BOOKING_COMPLETED,
    subject="Tu reserva fue completada",
    body_template=(
        "Tu reserva #{display_id} fue completada por {provider_name}. "
        "¡Gracias por usar nuestro servicio!"
    ),
    html_template=(
        "<p>¡Tu reserva fue completada!</p><p>Reserva <strong>#{display_id}</strong> "
        "completada por <strong>{provider_name}</strong>.</p>"
        "<p>¡Gracias por usar nuestro servicio!</p>"
    ),
)

# Provider templates
PAYMENT_AUTHORIZED = NotificationTemplate(
    event=NotificationEvent.PAYMENT_AUTHORIZED,
    subject="Nueva reserva",
    body_template="Nueva reserva #{display_id} de {category} para el {scheduled_local}.",
    html_template=(
        "<p>Nueva reserva <strong>#{display_id}</strong> de {category} "
        "para el {scheduled_local}.</p>"
    ),
)

TEMPLATES: Mapping[NotificationEvent, NotificationTemplate] = {
    template.event: template
    for template in (
        BOOKING_CREATED,
        BOOKING_ACCEPTED,
        BOOKING_REJECTED,
        BOOKING_ON_MY_WAY,
        BOOKING_ARRIVED,
        BOOKING_COMPLETED,
        PAYMENT_AUTHORIZED,
    )
}


class _SafeDict(dict):
    def __missing__(self, key: str) -> str:
        return ""


def render_template(event: NotificationEvent | str, context: Mapping[str, Any]) -> Dict[str, str]:
    """Return ``{"subject", "text", "html"}`` for an event."""
    template = TEMPLATES[NotificationEvent(event)]
    values = _SafeDict(context)
    if not values.get("provider_name"):
        values["provider_name"] = _DEFAULT_PROVIDER_NAME
    return {
        "subject": template.subject,
        "text": template.body_template.format_map(values),
        "html": template.html_template.format_map(values),
    }
