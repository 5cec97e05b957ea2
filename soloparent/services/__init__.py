"""
Solo Parent Backend: Services Layer
====================================

Business rules between the routes and the database. Each module exposes a
service class plus a module-level singleton that routes import.

Service Inventory:
    - document_registry:  the closed set of document types and required sets
    - workflow:           case status state machine, recompute, mail dispatch
    - retry:              retry-on-lock wrapper for row-locking transactions
    - document_service:   per-type document upsert, lookup and review status
    - notification_service: user, follow-up, child-request, admin, superadmin inboxes
    - event_service:      scheduling with the one-hour gap rule, reads, attendance, ratings
    - account_service:    login, password change and reset
    - case_service, admin_service, child_request_service, export_limit_service, media_service
    - mail_service, blob_storage: external collaborators (SMTP, Cloudinary)
"""
