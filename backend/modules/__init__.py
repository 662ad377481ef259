"""
Feature modules for the Forge backend.

Each module is self-contained with its own:
- interfaces.py: Protocol definitions for the module's public API
- models.py: Pydantic models for data transfer
- repository.py: Supabase access for the module's tables
- routes.py: FastAPI route handlers

plus its implementation (auth: service.py, tokens.py, federated.py;
chat: manager.py, protocol.py).

Modules communicate through interfaces, not concrete implementations.
"""
