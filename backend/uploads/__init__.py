"""
Statement uploads.

Keeps the PDF files users upload in a temp directory together with their
metadata, so a generation request can refer to a statement by file id.
"""
