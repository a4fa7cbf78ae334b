"""Randomised client identity used to blur the origin of scan traffic."""

import random
from typing import Dict

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:124.0) Gecko/20100101 Firefox/124.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36 Edg/124.0.0.0",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1",
)


def random_user_agent() -> str:
    return random.choice(USER_AGENTS)


def random_ipv4_address() -> str:
    # first octet avoids 0, 10, 127 and the multicast/reserved range
    first = random.choice([o for o in range(1, 224) if o not in (10, 127)])
    return f"{first}.{random.randint(0, 255)}.{random.randint(0, 255)}.{random.randint(1, 254)}"


def forged_request_headers() -> Dict[str, str]:
    """Headers for one outgoing request: random UA plus fake forwarding chain."""
    return {
        "User-Agent": random_user_agent(),
        "X-Forwarded-For": random_ipv4_address(),
        "Via": f"1.1 {random_ipv4_address()}",
        "Forwarded": f"for={random_ipv4_address()};proto=http;by={random_ipv4_address()}",
    }
