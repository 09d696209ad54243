"""Object-document mapping layer.

This module orchestrates entity persistence across the document
store and the blob store and exposes the SDK client.
"""
