"""Chat, posts and plant sensor readings over a length-prefixed JSON protocol: entities, client, services, server connections and a sensor uploader."""

__version__ = "0.1.0"