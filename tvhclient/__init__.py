"""Client library for the tvheadend HTSP protocol: messages, subscriptions,
connections, channels, guide events, decoder queues and settings."""

__version__ = "0.1.0"

__all__ = ["channels", "client", "codec", "config", "events", "messages", "subscription"]