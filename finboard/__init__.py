"""
FinBoard
Unified financial dashboard over Xero and QuickBooks Online reports.
"""
