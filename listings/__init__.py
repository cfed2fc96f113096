"""listings/ -- Listing domain model, persistence, and ownership-scoped operations.

Layer rule: listings/ imports only stdlib, third-party libraries, core/, and
auth.models. It does NOT import from api/.
"""
