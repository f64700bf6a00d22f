"""Conversion of semantic declarations into the reflection graph."""

from reflectdoc.converter.context import Context
from reflectdoc.converter.converter import Converter
from reflectdoc.converter.events import ConverterEvent, ConverterEvents, EventHub, SerializerEvent, SerializerEvents
from reflectdoc.converter.resolver import ReferenceResolver
from reflectdoc.converter.types import TypeConverter

__all__ = [
    "Context",
    "Converter",
    "ConverterEvent",
    "ConverterEvents",
    "EventHub",
    "ReferenceResolver",
    "SerializerEvent",
    "SerializerEvents",
    "TypeConverter",
]
