"""Services Layer — debate orchestration, verdict persistence, daily pipeline.

Invariants:
    - Services own IO sequencing; scoring and prompt text stay in core/
    - The pipeline (daily_debate.py) is the only caller that wires all three together

Design Decisions:
    - One module per responsibility: orchestrator, gateway, pipeline
"""
