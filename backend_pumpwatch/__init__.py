"""
Backend Pumpwatch — launch-integrity scoring and token verdicts for pump.fun launches.

Receives new-launch webhooks, keeps a bounded deduplicated launch feed, scores
each launch with explainable integrity heuristics, and produces a multi-module
ENTER / WAIT / IGNORE / EXIT verdict for a single token on request.
"""

__version__ = "0.2.0"
