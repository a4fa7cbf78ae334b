"""DNS lookups used by the resolver and takeover stages.

Names are always queried in fully qualified form (trailing dot) so that search
domains from the local resolver configuration never get appended.
"""

import socket
from typing import List, Tuple

import dns.resolver


def fqdn(hostname: str) -> str:
    return hostname if hostname.endswith('.') else f'{hostname}.'


def lookup_host(hostname: str) -> List[str]:
    """Addresses for ``hostname`` from the system resolver, in answer order."""
    infos = socket.getaddrinfo(fqdn(hostname), None, proto=socket.IPPROTO_TCP)
    addrs: List[str] = []
    for _family, _type, _proto, _canon, sockaddr in infos:
        addr = sockaddr[0]
        if addr not in addrs:
            addrs.append(addr)
    return addrs


def lookup_cname(hostname: str) -> str:
    """Canonical name of ``hostname`` after following CNAME chains.

    A name without a CNAME record is its own canonical name. Raises
    ``dns.exception.DNSException`` when the name does not resolve.
    """
    answer = dns.resolver.resolve(fqdn(hostname), 'A', search=False)
    return answer.canonical_name.to_text()


def lookup_addrs_and_cname(hostname: str) -> Tuple[List[str], str]:
    return lookup_host(hostname), lookup_cname(hostname)
