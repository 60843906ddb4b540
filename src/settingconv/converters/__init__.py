"""Converter layer — scalar, editor-backed and structural converters."""
