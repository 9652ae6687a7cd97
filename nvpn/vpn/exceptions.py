"""Custom exceptions for VPN management."""


class VPNError(Exception):
    """Base exception for VPN-related errors."""
    pass


class ConfigurationError(VPNError):
    """Raised when there's an issue with the nvpn configuration"""
    pass


class ConfigMissing(ConfigurationError):
    """Raised when the configuration file does not exist"""
    pass


class ConfigInvalid(ConfigurationError):
    """Raised when the configuration file cannot be parsed or is incomplete"""
    pass


class CredentialError(VPNError):
    """Raised when the TOTP secret cannot be used to compute a code"""
    pass


class ConnectionError(VPNError):
    """Raised when bringing the VPN connection up or down fails"""
    pass
