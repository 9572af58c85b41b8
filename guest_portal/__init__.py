"""Guest Wi-Fi account provisioning for a FreeRADIUS SQL backend."""

__version__ = "1.0.0"
