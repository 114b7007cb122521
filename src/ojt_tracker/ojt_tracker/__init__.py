"""OJT Tracker package.

Feature modules (attendance, kanban, attachments, reports, ...) each expose a
thin Flask controller over service classes that depend on repository
interfaces, so the business rules run without a live database.
"""
