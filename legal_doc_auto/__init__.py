"""
legal-doc-auto: California family law document generation.
"""

__version__ = "0.1.0"
