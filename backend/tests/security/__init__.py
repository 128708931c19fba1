"""Security tests for the upload service

This module contains security-focused tests including:
- Path traversal through client filenames
- Executable and disguised-type uploads
- Markup injection into HTML status pages
"""
