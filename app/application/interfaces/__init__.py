"""Application interfaces (ports): service protocols.

Define contracts for infrastructure implementations and external
collaborators (DIP). No runtime imports from app.infrastructure.
"""

from app.application.interfaces.services import IEntitySource, IOutputCache

__all__ = [
    "IEntitySource",
    "IOutputCache",
]
