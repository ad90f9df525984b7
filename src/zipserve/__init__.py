"""
zipserve - serve the contents of a ZIP archive as a static web site

zipserve locates the site root inside an archive, derives the URL prefix
from a ``.prefix`` marker file, and serves the subtree over HTTP without
unpacking anything to disk.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
