"""Named TCP port selections and port specification parsing."""

from typing import Dict, List, Tuple

from .exceptions import InvalidPortSpecError

SMALL_PORTS: Tuple[int, ...] = (80, 443)

MEDIUM_PORTS: Tuple[int, ...] = (80, 443, 8000, 8080, 8443)

LARGE_PORTS: Tuple[int, ...] = (
    80, 81, 443, 591, 2082, 2087, 2095, 2096, 3000, 8000, 8001, 8008, 8080, 8083, 8443, 8834, 8888,
)

XLARGE_PORTS: Tuple[int, ...] = (
    80, 81, 300, 443, 591, 593, 832, 981, 1010, 1311, 2082, 2087, 2095, 2096, 2480, 3000, 3128,
    3333, 4243, 4567, 4711, 4712, 4993, 5000, 5104, 5108, 5800, 6543, 7000, 7396, 7474, 8000,
    8001, 8008, 8014, 8042, 8069, 8080, 8081, 8088, 8090, 8091, 8118, 8123, 8172, 8222, 8243,
    8280, 8281, 8333, 8443, 8500, 8834, 8880, 8888, 8983, 9000, 9043, 9060, 9080, 9090, 9091,
    9200, 9443, 9800, 9981, 12443, 16080, 18091, 18092, 20720, 28017,
)

PORT_LISTS: Dict[str, Tuple[int, ...]] = {
    'small': SMALL_PORTS,
    '': MEDIUM_PORTS,
    'medium': MEDIUM_PORTS,
    'default': MEDIUM_PORTS,
    'large': LARGE_PORTS,
    'xlarge': XLARGE_PORTS,
    'huge': XLARGE_PORTS,
}


def resolve_ports(spec: str) -> List[int]:
    """Turn a port selection into a list of ports.

    ``spec`` is either one of the names in ``PORT_LISTS`` or a comma separated
    list of port numbers. Duplicates are dropped, order is kept.
    """
    key = (spec or '').strip().lower()
    if key in PORT_LISTS:
        return list(PORT_LISTS[key])
    ports: List[int] = []
    for raw in key.split(','):
        raw = raw.strip()
        try:
            port = int(raw)
        except ValueError:
            raise InvalidPortSpecError(spec) from None
        if port < 1 or port > 65535:
            raise InvalidPortSpecError(spec, f'invalid port given ({port})')
        if port not in ports:
            ports.append(port)
    return ports
