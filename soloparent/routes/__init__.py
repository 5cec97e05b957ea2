"""
Solo Parent Backend: API Routes Package
========================================

Route Inventory (all under /api except health):
    - auth.py:           login, account status, account creation, password change/reset
    - cases.py:          case listings and detail, status workflow, remarks, renewals, beneficiary flag
    - documents.py:      document upsert, listing, deletion and review
    - notifications.py:  user, follow-up, child-request, admin and superadmin inboxes
    - events.py:         events, read receipts, attendance, ratings
    - admins.py:         barangay admin accounts
    - child_requests.py: dependent requests and their two-stage review
    - media.py:          ID cards and announcements
    - export_limits.py:  per-admin daily export counters
    - health.py:         GET /health

Routes stay thin: they parse the request, call one service and shape the
response. Business rules live in services/.
"""
