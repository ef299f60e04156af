"""Choose the partner service a connection will talk to."""

import functools
import logging
from typing import Any, List, Mapping

from ..core.error import BaseError
from ..messaging.models.base import BaseModelError
from .models.service import ServiceDescriptor, endpoint_protocol

LOGGER = logging.getLogger(__name__)

SUPPORTED_SERVICE_TYPES = ("IndyAgent", "did-communication")
PREFERRED_PROTOCOL = "ws"


class SelectionError(BaseError):
    """The partner document offers no usable service."""


def service_priority_sort(a: Mapping[str, Any], b: Mapping[str, Any]) -> int:
    """
    Compare two service entries by endpoint scheme.

    Entries with the same scheme are equal; otherwise a `ws` endpoint comes first.
    """
    a_proto = endpoint_protocol(a["serviceEndpoint"])
    b_proto = endpoint_protocol(b["serviceEndpoint"])
    if a_proto == b_proto:
        return 0
    if a_proto == PREFERRED_PROTOCOL:
        return -1
    if b_proto == PREFERRED_PROTOCOL:
        return 1
    return 0


def supported_services(did_doc: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    """Return the services of a DID document with a supported type, best first."""
    services = did_doc.get("service") if isinstance(did_doc, Mapping) else None
    if not isinstance(services, list):
        return []
    candidates = [
        svc
        for svc in services
        if isinstance(svc, Mapping)
        and svc.get("type") in SUPPORTED_SERVICE_TYPES
        and isinstance(svc.get("serviceEndpoint"), str)
    ]
    return sorted(candidates, key=functools.cmp_to_key(service_priority_sort))


def select_service(did_doc: Mapping[str, Any]) -> ServiceDescriptor:
    """
    Pick the service a connection uses for its whole lifetime.

    Args:
        did_doc: The partner's DID document

    Returns:
        The selected service

    Raises:
        SelectionError: If no supported service with recipient keys is declared

    """
    candidates = supported_services(did_doc)
    if not candidates:
        raise SelectionError(
            "No service of type {} found in DID document".format(
                " or ".join(SUPPORTED_SERVICE_TYPES)
            )
        )
    try:
        service = ServiceDescriptor.deserialize(candidates[0])
    except BaseModelError as err:
        raise SelectionError("Invalid service entry in DID document") from err
    if not service.recipient_keys:
        raise SelectionError(f"Service {service.endpoint} has no recipient keys")

    LOGGER.debug(
        "Selected service %s (%s) from %d candidate(s)",
        service.endpoint,
        service.typ,
        len(candidates),
    )
    return service
