"""MQTT broker configuration, access control, forwarding rules and stop/reload control."""

__version__ = "0.1.0"