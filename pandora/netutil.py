"""Dialing helpers with simple DNS caching."""

from __future__ import annotations

import socket
import threading
from typing import Any

_FAMILIES = {
    "tcp": socket.AF_UNSPEC,
    "tcp4": socket.AF_INET,
    "tcp6": socket.AF_INET6,
}


def _split_host_port(addr: str) -> tuple[str, str]:
    if addr.startswith("["):
        end = addr.find("]")
        if end < 0:
            raise ValueError(f"address {addr}: missing ']' in address")
        host, rest = addr[1:end], addr[end + 1:]
        if not rest.startswith(":"):
            raise ValueError(f"address {addr}: missing port in address")
        return host, rest[1:]
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"address {addr}: missing port in address")
    if ":" in host:
        raise ValueError(f"address {addr}: too many colons in address")
    return host, port


def _join_host_port(host: str, port: str) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def _peer_ip(conn: Any) -> str:
    host = conn.getpeername()[0]
    return host.split("%", 1)[0]


class TCPDialer:
    """Opens TCP connections, trying every resolved address in turn."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    def dial(self, network: str, address: str) -> socket.socket:
        try:
            family = _FAMILIES[network]
        except KeyError:
            raise ValueError(f"unknown network {network}") from None
        host, port = _split_host_port(address)
        infos = socket.getaddrinfo(host or None, port, family, socket.SOCK_STREAM)
        last_error: OSError | None = None
        for fam, sock_type, proto, _, sockaddr in infos:
            sock = socket.socket(fam, sock_type, proto)
            try:
                sock.settimeout(self.timeout)
                sock.connect(sockaddr)
                sock.settimeout(None)
            except OSError as err:
                sock.close()
                last_error = err
                continue
            return sock
        if last_error is not None:
            raise last_error
        raise OSError(f"dial {network} {address}: no suitable address found")


class SimpleDNSCache:
    """Thread-safe map from dialed address to resolved address."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._host_to_addr: dict[str, str] = {}

    def get(self, addr: str) -> str | None:
        with self._lock:
            return self._host_to_addr.get(addr)

    def add(self, addr: str, resolved: str) -> None:
        with self._lock:
            self._host_to_addr[addr] = resolved


class DNSCachingDialer:
    """Remembers the remote address of the first connection and reuses it."""

    def __init__(self, dialer: Any, cache: Any) -> None:
        self.dialer = dialer
        self.cache = cache

    def dial(self, network: str, address: str) -> Any:
        resolved = self.cache.get(address)
        if resolved is not None:
            return self.dialer.dial(network, resolved)
        conn = self.dialer.dial(network, address)
        ip = _peer_ip(conn)
        try:
            _, port = _split_host_port(address)
        except ValueError as err:
            conn.close()
            raise ValueError(
                "invalid address, but successful dial - should not happen"
            ) from err
        self.cache.add(address, _join_host_port(ip, port))
        return conn


DEFAULT_DNS_CACHE = SimpleDNSCache()


def new_dns_caching_dialer(dialer: Any, cache: Any) -> DNSCachingDialer:
    return DNSCachingDialer(dialer, cache)


def lookup_reachable(addr: str) -> str:
    """Resolve addr by connecting to it, returning the reachable ip:port."""
    with TCPDialer().dial("tcp", addr) as conn:
        _, port = _split_host_port(addr)
        return _join_host_port(_peer_ip(conn), port)


def warm_dns_cache(cache: Any, addr: str) -> None:
    """Connect to addr once so that its resolved address lands in cache."""
    conn = DNSCachingDialer(TCPDialer(), cache).dial("tcp", addr)
    conn.close()