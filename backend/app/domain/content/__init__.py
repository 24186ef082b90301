"""
Content Domain Module

Contracts for the document-store services whose results the cache layer
stores. Implementations live outside the cache subsystem.
"""
