"""
WS-Discovery Probe message construction
"""

import uuid

from .constants import (
    DISCOVERY_TO,
    NS_ADDRESSING,
    NS_DISCOVERY,
    NS_ONVIF_NETWORK,
    NS_SOAP_ENVELOPE,
    PROBE_ACTION,
    PROBE_TYPE,
)

_PROBE_TEMPLATE = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<s:Envelope xmlns:s="{soap}" xmlns:a="{addressing}">'
    '<s:Header>'
    '<a:Action s:mustUnderstand="1">{action}</a:Action>'
    '<a:MessageID>uuid:{message_id}</a:MessageID>'
    '<a:ReplyTo><a:Address>http://schemas.xmlsoap.org/ws/2004/08/addressing/role/anonymous</a:Address></a:ReplyTo>'
    '<a:To s:mustUnderstand="1">{to}</a:To>'
    '</s:Header>'
    '<s:Body>'
    '<Probe xmlns="{discovery}">'
    '<d:Types xmlns:d="{discovery}" xmlns:dp0="{onvif}">dp0:{probe_type}</d:Types>'
    '</Probe>'
    '</s:Body>'
    '</s:Envelope>'
)


def build_probe(message_id: uuid.UUID) -> bytes:
    """
    Build the Probe datagram for a discovery round.
    The MessageID carries the canonical form of message_id so replies can be
    correlated through their RelatesTo header.
    """
    message = _PROBE_TEMPLATE.format(
        soap=NS_SOAP_ENVELOPE,
        addressing=NS_ADDRESSING,
        discovery=NS_DISCOVERY,
        onvif=NS_ONVIF_NETWORK,
        action=PROBE_ACTION,
        to=DISCOVERY_TO,
        probe_type=PROBE_TYPE,
        message_id=str(message_id),
    )
    return message.encode('utf-8')
