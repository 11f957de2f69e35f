"""CSV ingestion layer.

This module decodes, parses, and merges CSV files into header-plus-rows
payloads, and serializes table exports back into CSV text.
"""
