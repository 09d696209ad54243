"""Document and blob storage layer.

This module defines the store interfaces, the bundled backends and
the connector that resolves collection paths to store handles.
"""
