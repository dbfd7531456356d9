# Stores package init
"""
Biowiki — Stores Package
=========================

What:  The filesystem-backed wiki store.

Store Inventory:
    - blobs.py:        ContentAddressedStore (write-once, key = SHA-256)
    - versions.py:     VersionStore (page snapshots on top of blobs)
    - attachments.py:  AttachmentStore / Attachment (raw files, MIME by extension)
    - pages.py:        Page (identity, current detail, write path)
    - webs.py:         Web / WebCollection (directory hierarchy)

Stores know nothing about HTTP. They raise biowiki.exceptions errors and
never retry.
"""

from biowiki.stores.attachments import Attachment, AttachmentStore
from biowiki.stores.pages import Page
from biowiki.stores.versions import VersionStore
from biowiki.stores.webs import Web, WebCollection

__all__ = ["Attachment", "AttachmentStore", "Page", "VersionStore", "Web", "WebCollection"]
