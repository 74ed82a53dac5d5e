"""
Data models.
"""
