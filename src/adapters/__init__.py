"""View adapter layer.

This module compiles view wrappers around entities and converts
entities and views to and from plain document payloads.
"""
