"""Domain layer — values, type descriptors, and error kinds.

This layer depends only on stdlib.
It must never import from converters, registry, plugins, commands, or config.
"""
