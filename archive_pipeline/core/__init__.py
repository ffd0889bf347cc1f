"""
Core configuration and state of the Channel Archive Pipeline
"""
