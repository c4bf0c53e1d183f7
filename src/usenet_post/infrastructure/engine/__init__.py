"""Posting engine adapters."""

from usenet_post.infrastructure.engine.progress import LogProgressDecoder
from usenet_post.infrastructure.engine.supervisor import EngineProcess, EngineSupervisor, SupervisorState

__all__ = ["LogProgressDecoder", "EngineProcess", "EngineSupervisor", "SupervisorState"]
