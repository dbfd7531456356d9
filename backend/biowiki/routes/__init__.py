# Routes package init
"""
Biowiki — API Routes Package
=============================

Route Inventory:
    - health.py:  GET /health
    - wiki.py:    every /webs/... URL, classified by biowiki.router.PathRouter

    GET  /webs                                      list webs
    POST /webs                                      create web
    GET  /webs/:w/pages                             list pages
    POST /webs/:w/pages                             create page
    GET  /webs/:w/pages/:p                          show page
    PUT  /webs/:w/pages/:p                          update page
    GET  /webs/:w/pages/:p/attachments              list attachments
    POST /webs/:w/pages/:p/attachments              upload attachment
    GET  /webs/:w/pages/:p/attachments/:a           serve attachment
    GET  /webs/:w/pages/:p/versions                 list versions
    GET  /webs/:w/pages/:p/versions/:hash           show version

Design Principle:
    Routes are THIN: read the body, call WikiService, shape the response.
    health.py must be included before wiki.py, whose catch-all path would
    otherwise shadow /health.
"""
