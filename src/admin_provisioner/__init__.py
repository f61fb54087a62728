"""Out-of-band administrator account provisioning."""

__version__ = "0.1.0"
