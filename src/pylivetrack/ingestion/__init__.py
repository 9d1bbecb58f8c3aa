"""Ingestion layer.

Translates stream messages, backend responses and sensor fixes into
normalized state events.
"""
