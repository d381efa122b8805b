from __future__ import annotations
"""Finite state machine helper for status columns with a fixed transition graph.

Used for the asset update-request lifecycle:
    from assetflow.utils.fsm import TransitionValidator
    UPDATE_FSM = TransitionValidator({
        'none': {'pending'},
        'pending': {'approved', 'rejected'},
        'approved': {'pending'},
        'rejected': {'pending'},
    }, field_name='updateRequestStatus')
    UPDATE_FSM.assert_can_transition(current_status, target_status)

Aborts with 409 by default: the request is well formed but the record is in the wrong state.
"""
from typing import Dict, Optional, Set
from flask import abort

class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status', error_code: int = 409):
        self.graph = graph
        self.field_name = field_name
        self.error_code = error_code

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str, description: Optional[str] = None):
        if not self.can_transition(current, target):
            abort(self.error_code, description=description or f"Invalid {self.field_name} transition {current} -> {target}")
        return True

    def states(self):
        """All states in declaration order, targets included."""
        seen = []
        for src, targets in self.graph.items():
            for s in [src, *sorted(targets)]:
                if s not in seen:
                    seen.append(s)
        return seen

__all__ = ['TransitionValidator']
