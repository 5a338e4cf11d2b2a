"""Core application components.

This module provides the foundational components for the Flood Relief API:
- Database connection management via Prisma
- Application settings and logging configuration
- Password/token hashing and JWT helpers
- Outbound SMS (MSG91) and document storage (Supabase) clients
"""
