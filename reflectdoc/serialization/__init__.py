"""JSON interchange serialization."""

from reflectdoc.serialization.serializer import JSON_SCHEMA_VERSION, Serializer, SerializerHook

__all__ = ["JSON_SCHEMA_VERSION", "Serializer", "SerializerHook"]
