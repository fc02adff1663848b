"""Input validation utilities.

Provides validation for:
- Comma-separated parameter lists
- Port numbers
- Source addresses (IPv4/IPv6 addresses and CIDR blocks)
- Grouping construct names

All validators return the validated (canonical) value or raise ValidationError.
"""

import ipaddress
import re

from fwrole.core.exceptions import ValidationError


MIN_PORT = 1
MAX_PORT = 65535

# iptables limits chain names to 28 characters
MAX_CHAIN_LENGTH = 28
CHAIN_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")

PORT_PATTERN = re.compile(r"^[0-9]+$")


def split_csv(value: str, parameter: str) -> list[str]:
    """Split a comma-separated parameter into trimmed entries.

    Args:
        value: Raw parameter value
        parameter: Parameter name for error messages

    Returns:
        List of non-empty, stripped entries (may be empty if value is blank)

    Raises:
        ValidationError: If the list contains an empty entry
    """
    if not value or not value.strip():
        return []

    entries = [entry.strip() for entry in value.split(",")]
    for position, entry in enumerate(entries, start=1):
        if not entry:
            raise ValidationError(
                f"Empty entry in '{parameter}' at position {position}: '{value}'",
                hint=f"Separate values with single commas, e.g. {parameter}=80,443",
            )
    return entries


def validate_port(value: str) -> int:
    """Validate a port number given as text.

    Args:
        value: Port as written in the configuration

    Returns:
        The port as an integer

    Raises:
        ValidationError: If the port is not a decimal integer in range
    """
    if not PORT_PATTERN.match(value):
        raise ValidationError(
            f"Invalid port number: '{value}'",
            hint=f"Port must be an integer between {MIN_PORT} and {MAX_PORT}",
        )

    port = int(value)
    if not MIN_PORT <= port <= MAX_PORT:
        raise ValidationError(
            f"Invalid port number: {port}",
            hint=f"Port must be between {MIN_PORT} and {MAX_PORT}",
        )
    return port


def validate_source(value: str) -> str:
    """Validate a source IP address or CIDR block.

    Host bits are masked off and full-length prefixes are dropped, so
    "10.0.0.1/32" and "10.0.0.1" both yield "10.0.0.1" and "10.0.0.7/24"
    yields "10.0.0.0/24". This is the form packet filters print back.

    Args:
        value: Address or CIDR string

    Returns:
        Canonical address or network string

    Raises:
        ValidationError: If the value is not an address or network
    """
    try:
        network = ipaddress.ip_network(value, strict=False)
    except ValueError as e:
        raise ValidationError(
            f"Invalid source IP/CIDR: '{value}'",
            hint="Use format like '10.0.0.0/8', '192.168.1.1' or '2001:db8::/32'",
            details=[str(e)],
        ) from e

    if network.prefixlen == network.max_prefixlen:
        return str(network.network_address)
    return network.with_prefixlen


def validate_chain_name(value: str) -> str:
    """Validate the name of the table/chain that groups our rules.

    Raises:
        ValidationError: If the name cannot be used by both backends
    """
    if not value:
        raise ValidationError(
            "Chain name cannot be empty",
            hint="Provide a name such as 'fwrole'",
        )

    if len(value) > MAX_CHAIN_LENGTH:
        raise ValidationError(
            f"Chain name exceeds maximum length ({len(value)} > {MAX_CHAIN_LENGTH})",
            hint=f"Use a name with {MAX_CHAIN_LENGTH} or fewer characters",
        )

    if not CHAIN_PATTERN.match(value):
        raise ValidationError(
            f"Invalid chain name: '{value}'",
            hint="Must start with a letter and contain only letters, digits, '_' and '-'",
        )

    return value
