"""HTTP session setup for Jira and Maven repository access.

Corporate SSL inspection proxies (e.g. Netskope) re-sign traffic with their
own CA, and OpenSSL 3.x rejects some of those certificates because of
missing key usage extensions. Sessions created here trust such a bundle when
one is configured or detected.
"""

import os
import ssl
import logging
from typing import Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.ssl_ import create_urllib3_context

from . import __version__

logger = logging.getLogger(__name__)

CA_BUNDLE_ENV = "BOMADVISORY_CA_BUNDLE"

# Known corporate SSL inspection cert bundle locations
CORPORATE_CERT_PATHS = [
    "/Library/Application Support/Netskope/STAgent/data/netskope-cert-bundle.pem",  # Netskope macOS
    "/etc/netskope/cert-bundle.pem",  # Netskope Linux
]

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": f"bomadvisory/{__version__}",
}


def get_ca_bundle_path() -> Optional[str]:
    """Return the CA bundle to trust: the configured one, else a detected corporate bundle."""
    configured = os.environ.get(CA_BUNDLE_ENV)
    if configured:
        if os.path.exists(configured):
            return configured
        logger.warning(f"{CA_BUNDLE_ENV} points to missing file {configured}, ignoring")
    for path in CORPORATE_CERT_PATHS:
        if os.path.exists(path):
            return path
    return None


class CABundleAdapter(HTTPAdapter):
    """HTTP adapter that trusts an extra CA bundle with relaxed key usage checks."""

    def __init__(self, cert_path: str, **kwargs):
        self.cert_path = cert_path
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        ctx = create_urllib3_context()
        ctx.load_default_certs()
        ctx.load_verify_locations(self.cert_path)
        logger.debug(f"Loaded CA bundle from {self.cert_path}")

        # Relax strict key usage validation (OpenSSL 3.x)
        ctx.verify_flags = ssl.VERIFY_DEFAULT

        kwargs['ssl_context'] = ctx
        return super().init_poolmanager(*args, **kwargs)


def create_session(headers: Optional[Dict[str, str]] = None) -> requests.Session:
    """Create a requests session with the default headers and any CA bundle mounted."""
    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)
    if headers:
        session.headers.update(headers)

    cert_path = get_ca_bundle_path()
    if cert_path:
        logger.info(f"Using CA bundle {cert_path}")
        session.mount('https://', CABundleAdapter(cert_path))

    return session
