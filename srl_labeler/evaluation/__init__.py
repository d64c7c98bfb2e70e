"""Evaluation of predicted frames against gold frames."""

from .metrics import PRF, TOTAL, Evaluator, safe_divide

__all__ = ["Evaluator", "PRF", "TOTAL", "safe_divide"]
