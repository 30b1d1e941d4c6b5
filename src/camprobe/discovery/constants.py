"""
WS-Discovery protocol constants
"""

# Well-known multicast group and port (WS-Discovery 2005/04)
WS_MULTICAST_ADDRESS = "239.255.255.250"
WS_MULTICAST_PORT = 3702

# Largest UDP payload we accept from a responder
MAX_DATAGRAM_SIZE = 65507

NS_SOAP_ENVELOPE = "http://www.w3.org/2003/05/soap-envelope"
NS_ADDRESSING = "http://schemas.xmlsoap.org/ws/2004/08/addressing"
NS_DISCOVERY = "http://schemas.xmlsoap.org/ws/2005/04/discovery"
NS_ONVIF_NETWORK = "http://www.onvif.org/ver10/network/wsdl"

DISCOVERY_TO = "urn:schemas-xmlsoap-org:ws:2005:04:discovery"
PROBE_ACTION = "http://schemas.xmlsoap.org/ws/2005/04/discovery/Probe"

# Device class targeted by the probe
PROBE_TYPE = "NetworkVideoTransmitter"
