"""
Media Layer.

This package is responsible for carrying out individual downloads: streaming
files to disk, or handing links to the system web browser.
"""

from .downloader import BrowserTrigger, Downloader, SaveTrigger

__all__ = ["BrowserTrigger", "Downloader", "SaveTrigger"]
