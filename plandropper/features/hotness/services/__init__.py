"""
Service layer for the hotness feature.
"""
