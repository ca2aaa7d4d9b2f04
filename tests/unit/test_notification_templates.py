import pytest

from probook.core.enums import NotificationEvent
from probook.notifications.templates import TEMPLATES, render_template


def test_completed_message():
    rendered = render_template(
        NotificationEvent.BOOKING_COMPLETED,
        {"display_id": "A2223", "provider_name": "Juan Plomero"},
    )

    assert rendered["subject"] == "Tu reserva fue completada"
    assert rendered["text"] == (
        "Tu reserva #A2223 fue completada por Juan Plomero. ¡Gracias por usar nuestro servicio!"
    )
    assert "<strong>#A2223</strong>" in rendered["html"]


def test_missing_provider_name_uses_generic_label():
    rendered = render_template(NotificationEvent.BOOKING_CREATED, {"display_id": "A2223"})
    assert rendered["text"] == (
        "Tu reserva #A2223 con el profesional fue creada exitosamente. Te avisaremos cuando la acepte."
    )


def test_missing_placeholders_render_empty():
    rendered = render_template("booking.arrived", {"display_id": "A2223", "provider_name": "Juan"})
    assert rendered["text"] == "Juan llegó a  para tu reserva #A2223."


def test_every_notified_event_has_a_template():
    notified = {
        NotificationEvent.BOOKING_CREATED,
        NotificationEvent.BOOKING_ACCEPTED,
        NotificationEvent.BOOKING_REJECTED,
        NotificationEvent.BOOKING_ON_MY_WAY,
        NotificationEvent.BOOKING_ARRIVED,
        NotificationEvent.BOOKING_COMPLETED,
        NotificationEvent.PAYMENT_AUTHORIZED,
    }
    assert notified <= set(TEMPLATES)


def test_unknown_event_raises():
    with pytest.raises(ValueError):
        render_template("booking.teleported", {})
