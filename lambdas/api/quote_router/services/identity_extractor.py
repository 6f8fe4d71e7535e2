"""
Extracts the caller identity from a quoting SOAP envelope.

The envelope carries an ACORD document as CDATA inside
Envelope/Body/getQuoteRequest/quoteRequest; the identity is the
ACORD SignonRq/SignonTransport/CustId/CustPermId value.
"""

import xml.etree.ElementTree as ET
from typing import Iterable, Optional

from models.errors import MalformedEnvelope

ENVELOPE_PATH = ("Envelope", "Body", "getQuoteRequest", "quoteRequest")
ACORD_ROOT = "ACORD"
IDENTITY_PATH = ("SignonRq", "SignonTransport", "CustId", "CustPermId")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _child(element: ET.Element, name: str) -> Optional[ET.Element]:
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def _walk(root: ET.Element, path: Iterable[str], document: str) -> ET.Element:
    current = root
    walked = [_local_name(root.tag)]
    for name in path:
        found = _child(current, name)
        if found is None:
            raise MalformedEnvelope(
                f"Missing element '{name}' in {document}",
                details=f"Expected under /{'/'.join(walked)}",
            )
        walked.append(name)
        current = found
    return current


def _parse(content: str, document: str) -> ET.Element:
    try:
        return ET.fromstring(content)
    except ET.ParseError as e:
        raise MalformedEnvelope(f"Unable to parse {document} as XML", details=str(e))


def extract_identity(raw_envelope: str) -> str:
    """
    Extract the caller identity from a SOAP envelope.

    Args:
        raw_envelope: SOAP envelope as received from the caller

    Returns:
        Non-empty identity string

    Raises:
        MalformedEnvelope: If either document fails to parse or any
            expected element is missing or empty
    """
    if not raw_envelope or not raw_envelope.strip():
        raise MalformedEnvelope("Request body is empty")

    envelope = _parse(raw_envelope.strip(), "SOAP envelope")
    if _local_name(envelope.tag) != ENVELOPE_PATH[0]:
        raise MalformedEnvelope(
            "SOAP envelope root is not an Envelope element",
            details=f"Found root '{_local_name(envelope.tag)}'",
        )

    quote_request = _walk(envelope, ENVELOPE_PATH[1:], "SOAP envelope")
    cdata = (quote_request.text or "").strip()
    if not cdata:
        raise MalformedEnvelope("quoteRequest carries no CDATA payload")

    acord = _parse(cdata, "quoteRequest payload")
    if _local_name(acord.tag) != ACORD_ROOT:
        raise MalformedEnvelope(
            "quoteRequest payload is not an ACORD document",
            details=f"Found root '{_local_name(acord.tag)}'",
        )

    identity = (_walk(acord, IDENTITY_PATH, "ACORD payload").text or "").strip()
    if not identity:
        raise MalformedEnvelope("CustPermId is empty")

    return identity
