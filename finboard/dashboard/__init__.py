"""
Dashboard Package
KPI extraction, monthly trends and the dashboard API.
"""
