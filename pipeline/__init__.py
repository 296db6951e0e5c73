"""Notification pipeline: event kinds and the pass runner."""
from pipeline.kinds import KINDS, RENEWALS, SALES, EventKind
from pipeline.runner import PassReport, run_all, run_pass

__all__ = ["EventKind", "SALES", "RENEWALS", "KINDS", "PassReport", "run_pass", "run_all"]
