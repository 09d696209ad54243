"""Entity schema layer.

This module derives immutable storage metadata from field markers
and caches it per entity type for the mapper and adapter compiler.
"""
