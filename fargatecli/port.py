"""Load balancer listener ports given as protocol:number expressions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

_VALID_PROTOCOL = re.compile(r"\ATCP|HTTPS?\Z", re.IGNORECASE)
_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class PortError(ValueError):
    """Raised or reported when a port expression or port is not valid."""


@dataclass(frozen=True)
class Port:
    """A port number together with its protocol."""

    number: int = 0
    protocol: str = ""

    def is_empty(self) -> bool:
        return self.number == 0 or self.protocol == ""

    def __str__(self) -> str:
        if self.is_empty():
            return ""
        return f"{self.protocol}:{self.number}"


def _build_port(number: str, protocol: str) -> Port:
    if not _INTEGER.fullmatch(number):
        raise PortError(f"could not parse port number from {number}")
    value = int(number)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise PortError(f"could not parse port number from {number}")
    return Port(value, protocol)


def inflate_port(port_expr: str) -> Port:
    """Parse a port expression such as ``80``, ``443``, ``http:8080`` or ``1935``."""
    if port_expr == "80":
        return _build_port(port_expr, "HTTP")
    if port_expr == "443":
        return _build_port(port_expr, "HTTPS")
    if port_expr.find(":") > 1:
        parts = port_expr.split(":")
        return _build_port(parts[1], parts[0].upper())
    return _build_port(port_expr, "TCP")


def inflate_ports(port_exprs: Iterable[str]) -> tuple[list[Port], list[PortError]]:
    """Parse every expression, returning the ports parsed and the errors met."""
    ports: list[Port] = []
    errors: list[PortError] = []
    for expr in port_exprs:
        try:
            ports.append(inflate_port(expr))
        except PortError as err:
            errors.append(err)
    return ports, errors


def validate_port(port: Port) -> list[PortError]:
    """Return the problems with a port's protocol and number, if any."""
    errors: list[PortError] = []
    if not _VALID_PROTOCOL.search(port.protocol):
        errors.append(
            PortError(f"invalid protocol {port.protocol} (specify TCP, HTTP, or HTTPS)")
        )
    if port.number < 1 or port.number > 65535:
        errors.append(PortError(f"invalid port {port.number} (specify within 1 - 65535)"))
    return errors