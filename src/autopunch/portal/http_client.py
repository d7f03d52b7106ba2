"""HTTP session factory for portal calls.

Sessions are mounted with retries disabled; a failed call is reported to the
caller, never repeated here.
"""

import requests
from requests.adapters import HTTPAdapter


def create_session():
    """Create a new requests.Session with connection pooling and no retry."""
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=1,
        pool_maxsize=3,
        max_retries=0,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session
