"""Application layer: use cases, DTOs, and ports (interfaces).

Depends on domain only. Infrastructure implements the ports.
"""
