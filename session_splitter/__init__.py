"""
Session Splitter - Windows Security log session windowing.
Main package for splitting security-audit exports into per-logon-session files.
"""

__version__ = "0.1.0"
