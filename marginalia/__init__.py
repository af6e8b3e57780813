"""
Marginalia: annotation record store and page reconciliation for PDF readers.
"""
__version__ = "0.1.0"
