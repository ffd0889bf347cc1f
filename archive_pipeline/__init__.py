"""
Channel Archive Pipeline
"""
