"""HTTP session helpers for the chat transport.

Some hosting networks advertise IPv6 routes that silently drop packets,
which turns every Bot API call into a connect timeout. ``IPv4HTTPAdapter``
resolves hosts over IPv4 only, scoped to the session it is mounted on.
"""

import ipaddress
import socket
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPConnection, HTTPSConnection
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return False
    return True


def _resolve_ipv4(host: str, port: int) -> Optional[str]:
    try:
        infos = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_STREAM)
    except socket.gaierror:
        # No A record; the default dial reports the resolution error
        return None
    return infos[0][4][0] if infos else None


class _IPv4Mixin:
    def _new_conn(self):
        # host (SNI, certificate, Host header) reads _dns_host: swap it only
        # for the dial
        original = self._dns_host
        if original and not _is_ip_literal(original):
            address = _resolve_ipv4(original, self.port)
            if address:
                self._dns_host = address
        try:
            return super()._new_conn()
        finally:
            self._dns_host = original


class IPv4HTTPConnection(_IPv4Mixin, HTTPConnection):
    pass


class IPv4HTTPSConnection(_IPv4Mixin, HTTPSConnection):
    pass


class IPv4HTTPConnectionPool(HTTPConnectionPool):
    ConnectionCls = IPv4HTTPConnection


class IPv4HTTPSConnectionPool(HTTPSConnectionPool):
    ConnectionCls = IPv4HTTPSConnection


class IPv4HTTPAdapter(HTTPAdapter):
    """HTTPAdapter whose connection pools dial IPv4 addresses only."""

    def init_poolmanager(self, *args, **kwargs):
        super().init_poolmanager(*args, **kwargs)
        self.poolmanager.pool_classes_by_scheme = {
            "http": IPv4HTTPConnectionPool,
            "https": IPv4HTTPSConnectionPool,
        }


def build_session(prefer_ipv4: bool = True) -> requests.Session:
    """Create a requests Session, IPv4-only when ``prefer_ipv4`` is set."""
    session = requests.Session()
    session.headers.update({"Content-Type": "application/json"})
    if prefer_ipv4:
        adapter = IPv4HTTPAdapter()
        session.mount("https://", adapter)
        session.mount("http://", adapter)
    return session
