"""
edzip-cli: search a checklist/evidence-document catalog and download its files.
"""

__version__ = "1.0.0"
