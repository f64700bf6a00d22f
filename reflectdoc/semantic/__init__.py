"""Semantic analysis contract and the ``ast``-backed Python provider."""

from reflectdoc.semantic.protocol import (
    CallSignatureInfo,
    Declaration,
    DeclarationKind,
    Diagnostic,
    DiagnosticCategory,
    EntryPoint,
    Modifier,
    ParameterInfo,
    SemanticProvider,
    SourceLocation,
    TypeDescription,
    TypeDescriptionKind,
    TypeParameterInfo,
)
from reflectdoc.semantic.python_provider import PythonSemanticProvider, is_public_name

__all__ = [
    "CallSignatureInfo",
    "Declaration",
    "DeclarationKind",
    "Diagnostic",
    "DiagnosticCategory",
    "EntryPoint",
    "Modifier",
    "ParameterInfo",
    "PythonSemanticProvider",
    "SemanticProvider",
    "SourceLocation",
    "TypeDescription",
    "TypeDescriptionKind",
    "TypeParameterInfo",
    "is_public_name",
]
