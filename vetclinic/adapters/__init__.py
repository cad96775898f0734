"""Adapters layer for the clinic registry.

This module contains the text codec for the snapshot format and the storage
adapters that read and write it.
"""
