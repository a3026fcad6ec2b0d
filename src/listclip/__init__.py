"""
listclip - Recursively list files and copy them to the clipboard.

This package walks a directory tree, honours .gitignore style ignore rules,
optionally filters by file extension, and builds a plain-text or JSON report
of paths and (textual) file contents for pasting into other tools.
"""

__version__ = "1.5.0"
__author__ = "listclip Team"
