"""
============================================================================
TRICKLE MONITOR - VALIDATORS UTILITY
============================================================================
Validation helpers for addresses and domain names.
============================================================================
"""

import ipaddress

import validators as external_validators


# ============================================================================
# ADDRESS VALIDATORS
# ============================================================================

class AddressValidator:
    """
    IP address and domain name validation.
    """

    @staticmethod
    def is_valid_domain(domain: str) -> bool:
        """
        Check if domain is valid.

        Args:
            domain: Domain to validate

        Returns:
            True if valid, False otherwise
        """
        try:
            return external_validators.domain(domain) is True
        except TypeError:
            return False

    @staticmethod
    def ip_version(ip: str):
        """Return 4 or 6 for a parseable address, None otherwise."""
        try:
            return ipaddress.ip_address(ip.strip()).version
        except ValueError:
            return None

    @staticmethod
    def is_ipv4(ip: str) -> bool:
        return AddressValidator.ip_version(ip) == 4

    @staticmethod
    def is_ipv6(ip: str) -> bool:
        return AddressValidator.ip_version(ip) == 6
