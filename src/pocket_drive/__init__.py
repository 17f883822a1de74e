"""pocket-drive - per-item access control over pocket file trees"""

__version__ = "0.4.0"
