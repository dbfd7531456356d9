# Middleware package init
"""
Biowiki — Middleware Package
=============================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID first: every later log line can use the id
    2. Logging: measures the full downstream duration

    Responses travel back through the same chain in reverse, which is when
    the X-Request-ID header is added and the access line is written.
"""
