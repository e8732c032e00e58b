"""
                        Services Module

Contains the client-side engine with the hybrid architecture pattern.
The remote store has Mock (development) and HTTP (production) implementations.

Services:
    - remote: mock / HTTP transport to the back-office API
    - store: Resource Store (full-refresh cache)
    - orchestrator: CRUD Orchestrator
    - workflow: Order Workflow Engine
    - confirmation: Confirmation Gate
    - notifications: single-slot Notification Queue
    - drafts: Draft/Edit Session
    - auth: login / registration client
    - dashboard: facade wiring it all together
"""

from backoffice.services.dashboard import AdminDashboard, DashboardOverview

__all__ = ["AdminDashboard", "DashboardOverview"]
