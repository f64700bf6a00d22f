"""Docstring parsing for the documentation model."""

from reflectdoc.comments.parser import PARAM_TAGS, parse_comment, parse_inline

__all__ = ["PARAM_TAGS", "parse_comment", "parse_inline"]
