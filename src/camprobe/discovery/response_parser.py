"""
ProbeMatches parsing and device extraction
"""

import logging
import re
import uuid
import xml.etree.ElementTree as ET
from typing import Callable, Iterable, List, Optional, Set, Tuple
from urllib.parse import unquote

from .models import DiscoveredDevice, ProbeMatch, ProbeMatchEnvelope, RawResponse

logger = logging.getLogger(__name__)

# scheme://authority/path/.../<segment>; the manufacturer is the trailing segment
SCOPE_URI_PATTERN = re.compile(
    r"^(?:(?P<scheme>[A-Za-z][A-Za-z0-9+.\-]*):)?"
    r"(?://(?P<authority>[^/]*))?"
    r"(?P<path>.*/)?"
    r"(?P<segment>[^/]*)$",
    re.DOTALL,
)

MODEL_MARKER = "hardware/"


def split_tokens(value: Optional[str]) -> Tuple[str, ...]:
    """Split a space-delimited field into trimmed, non-empty tokens"""
    if not value:
        return ()
    return tuple(token.strip() for token in value.split() if token.strip())


def _element_text(parent: Optional[ET.Element], path: str) -> str:
    if parent is None:
        return ""
    element = parent.find(path)
    if element is None or element.text is None:
        return ""
    return element.text.strip()


def parse_envelope(payload: bytes) -> Optional[ProbeMatchEnvelope]:
    """
    Parse a datagram payload as a ProbeMatches envelope.
    Elements are matched by local name so devices using other addressing
    namespace revisions still parse. Returns None for anything that is not a
    SOAP envelope.
    """
    try:
        root = ET.fromstring(payload.decode('utf-8'))
    except (UnicodeDecodeError, ET.ParseError):
        return None

    if not root.tag.endswith('}Envelope') and root.tag != 'Envelope':
        return None

    header = root.find('{*}Header')
    body = root.find('{*}Body')
    if header is None or body is None:
        return None

    matches = [
        ProbeMatch(
            scopes=_element_text(element, '{*}Scopes'),
            xaddrs=_element_text(element, '{*}XAddrs'),
            types=_element_text(element, '{*}Types'),
        )
        for element in body.findall('{*}ProbeMatches/{*}ProbeMatch')
    ]
    return ProbeMatchEnvelope(
        relates_to=_element_text(header, '{*}RelatesTo'),
        probe_matches=matches,
    )


def parse_model(scopes: str) -> Optional[str]:
    """Text following 'hardware/' up to the next whitespace"""
    index = scopes.find(MODEL_MARKER)
    if index < 0:
        return None
    remainder = scopes[index + len(MODEL_MARKER):]
    return re.match(r"\S*", remainder).group(0)


def _scope_segment(token: str) -> str:
    match = SCOPE_URI_PATTERN.match(unquote(token))
    return match.group('segment') if match else ""


def _name_rule(token: str) -> str:
    return _scope_segment(token).split(' ', 1)[0]


# Ordered by precedence: a mfr/ scope wins over a name/ scope
MANUFACTURER_RULES: List[Tuple[str, Callable[[str], str]]] = [
    ("mfr/", _scope_segment),
    ("name/", _name_rule),
]


def parse_manufacturer(scopes: str) -> str:
    tokens = scopes.split()
    for marker, extract in MANUFACTURER_RULES:
        token = next((t for t in tokens if marker in t), None)
        if token is not None:
            return extract(token)
    return ""


def is_correlated(envelope: ProbeMatchEnvelope, message_id: uuid.UUID) -> bool:
    return str(message_id) in envelope.relates_to


def create_device(response: RawResponse, message_id: uuid.UUID) -> Optional[DiscoveredDevice]:
    """
    Turn one raw response into a device, or None when the response is not a
    usable reply to this probe round.
    """
    envelope = parse_envelope(response.payload)
    if envelope is None:
        logger.debug(f"Dropping non-envelope datagram from {response.host}")
        return None

    if not is_correlated(envelope, message_id):
        logger.debug(f"Dropping uncorrelated reply from {response.host}")
        return None

    if not envelope.probe_matches or not envelope.probe_matches[0].scopes:
        logger.debug(f"Dropping reply without scopes from {response.host}")
        return None

    probe_match = envelope.probe_matches[0]
    return DiscoveredDevice(
        address=response.host,
        model=parse_model(probe_match.scopes),
        manufacturer=parse_manufacturer(probe_match.scopes),
        xaddrs=split_tokens(probe_match.xaddrs),
        types=split_tokens(probe_match.types),
    )


def process_responses(responses: Iterable[RawResponse], message_id: uuid.UUID) -> List[DiscoveredDevice]:
    """Parse recorded responses, keeping the first device per sender host"""
    devices = []
    seen: Set[str] = set()
    for response in responses:
        if response.host in seen:
            continue
        device = create_device(response, message_id)
        if device is not None:
            seen.add(response.host)
            devices.append(device)
    return devices
