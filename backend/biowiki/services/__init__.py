# Services package init
"""
Biowiki — Services Layer
=========================

What:  Business logic layer sitting between routes (HTTP) and stores (filesystem).
Why:   Routes handle HTTP, services handle locking, resolution and client-input
       rules, stores handle the on-disk layout.

Service Inventory:
    - WikiService: one method per wiki route (webs, pages, versions, attachments)
"""
