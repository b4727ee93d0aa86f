from .access import AccessPolicy
from .coordinator import Coordinator, CoordinatorBuilder
from .lifecycle import TriggerLifecycle, TriggerState
from .phrases import CommentClassification, PhraseMatcher
from .registry import TriggerRegistry

trigger_registry = TriggerRegistry()

__all__ = [
    "AccessPolicy",
    "CommentClassification",
    "Coordinator",
    "CoordinatorBuilder",
    "PhraseMatcher",
    "TriggerLifecycle",
    "TriggerRegistry",
    "TriggerState",
    "trigger_registry",
]
