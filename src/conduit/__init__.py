"""
Conduit - storage layer for a social article-publishing platform.

Users, articles, comments, tags, follows and favorites in a relational
schema whose deletes and key renames cascade through every reference.
"""

__version__ = "0.1.0"
__author__ = "Conduit Team"

from conduit.core.config import settings

__all__ = ["settings", "__version__"]
