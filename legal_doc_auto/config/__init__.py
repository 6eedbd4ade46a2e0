"""
Application configuration.
"""
