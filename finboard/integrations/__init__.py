"""
Accounting Integrations
Report clients and parsers for the supported accounting providers.
"""
