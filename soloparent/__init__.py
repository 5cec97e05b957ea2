"""
Solo Parent Backend: Application Package
=========================================

Case-management service for a municipal solo-parent welfare office:
applicant accounts, document approval, the case status workflow,
notifications, events and announcements.

Layering:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  workflow, documents, events, ...
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  Database handle, async sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
