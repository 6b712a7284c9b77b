"""Proof of delivery — commands and handler.

Photos are uploaded to the evidence store and only the returned URL is kept
on the shipment. ``ConfirmDelivery`` uploads and marks the shipment
Delivered in one step, the way the driver app finishes a drop.
"""

import base64
import binascii

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from shipping.configuration import get_evidence_store
from shipping.domain import shipping
from shipping.errors import Forbidden, MissingEvidence
from shipping.evidence.port import EvidenceUploadError
from shipping.shipment.lifecycle import ActorRole, Handoff, ShipmentStatus, check_transition
from shipping.shipment.services import actor_from_command
from shipping.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)

_EVIDENCE_ROLES = {ActorRole.ADMIN, ActorRole.DRIVER}


@shipping.command(part_of="Shipment")
class AttachDeliveryEvidence:
    shipment_id = Identifier(required=True)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, choices=ActorRole)
    handoff = String(choices=Handoff)
    evidence_url = String(max_length=500)
    content = Text()  # base64 encoded photo
    filename = String(max_length=200, default="delivery.jpg")
    content_type = String(max_length=100, default="image/jpeg")


@shipping.command(part_of="Shipment")
class ConfirmDelivery:
    shipment_id = Identifier(required=True)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, choices=ActorRole)
    handoff = String(choices=Handoff)
    expected_status = String(choices=ShipmentStatus)
    evidence_url = String(max_length=500)
    content = Text()  # base64 encoded photo
    filename = String(max_length=200, default="delivery.jpg")
    content_type = String(max_length=100, default="image/jpeg")
    note = Text()


def _store_evidence(command, shipment) -> str | None:
    """Return a URL for the evidence carried by the command, uploading it if needed."""
    if command.evidence_url:
        return command.evidence_url
    if not command.content:
        return None

    try:
        content = base64.b64decode(command.content, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError({"content": ["Evidence content must be base64 encoded"]}) from exc

    filename = f"{shipment.tracking_number}-{command.filename or 'delivery.jpg'}"
    try:
        return get_evidence_store().upload_and_get_url(content, filename, command.content_type or "image/jpeg")
    except EvidenceUploadError as exc:
        logger.error("Delivery evidence upload failed", shipment_id=str(shipment.id), error=str(exc))
        raise MissingEvidence(f"Proof of delivery could not be stored: {exc}") from exc


def _assert_may_attach(actor) -> None:
    if actor.role not in _EVIDENCE_ROLES:
        raise Forbidden(f"{actor.role.value} cannot attach proof of delivery")


@shipping.command_handler(part_of=Shipment)
class DeliveryHandler:
    @handle(AttachDeliveryEvidence)
    def attach_evidence(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        actor = actor_from_command(command)
        _assert_may_attach(actor)

        url = _store_evidence(command, shipment)
        if not url:
            raise ValidationError({"content": ["Provide either an evidence URL or the photo content"]})

        shipment.attach_delivery_evidence(url, actor)
        repo.add(shipment)
        return url

    @handle(ConfirmDelivery)
    def confirm_delivery(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get_shipment(command.shipment_id)
        actor = actor_from_command(command)
        expected = ShipmentStatus(command.expected_status) if command.expected_status else None

        # Reject stale, illegal or unauthorised requests before anything is uploaded
        check_transition(
            ShipmentStatus(shipment.status),
            ShipmentStatus.DELIVERED,
            actor,
            can_cancel=bool(shipment.can_cancel),
            has_evidence=True,
            expected_status=expected,
        )

        url = _store_evidence(command, shipment)
        if url:
            _assert_may_attach(actor)
            shipment.attach_delivery_evidence(url, actor)

        shipment.transition(
            ShipmentStatus.DELIVERED,
            actor,
            note=command.note,
            expected_status=expected,
        )
        repo.add(shipment)
        logger.info(
            "Shipment delivered",
            shipment_id=str(shipment.id),
            tracking_number=shipment.tracking_number,
            evidence_url=shipment.delivery_evidence_url,
        )
        return shipment.status
