# Policy evaluator exports
from .context import PolicyContext, PolicyEvaluator, PolicyResult
from .cors import cors

__all__ = ["PolicyContext", "PolicyEvaluator", "PolicyResult", "cors"]
