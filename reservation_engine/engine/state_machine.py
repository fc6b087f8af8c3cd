"""
reservation_engine/engine/state_machine.py

State machine engine - declared transitions fired by trigger name
"""
from typing import Dict, List, Optional
from dataclasses import dataclass, field
import logging

logger = logging.getLogger(__name__)


@dataclass
class StateTransition:
    """
    A declared transition

    Attributes:
        from_state: source state
        to_state: target state
        trigger: action name that fires the transition
    """

    from_state: str
    to_state: str
    trigger: str


@dataclass
class StateMachineConfig:
    """
    State machine configuration

    Attributes:
        name: machine name (used in logs)
        states: every state
        transitions: declared transitions
        initial_state: state of a new instance
        terminal_states: states with no way out; derived from transitions when empty
    """

    name: str
    states: List[str]
    transitions: List[StateTransition]
    initial_state: str
    terminal_states: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.initial_state not in self.states:
            raise ValueError(f"{self.name}: initial state '{self.initial_state}' is not declared")
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(f"{self.name}: transition {t.from_state} -> {t.to_state} uses undeclared state")
        if not self.terminal_states:
            sources = {t.from_state for t in self.transitions}
            self.terminal_states = [s for s in self.states if s not in sources]

    @property
    def triggers(self) -> List[str]:
        return sorted({t.trigger for t in self.transitions})


class StateMachine:
    """
    State machine instance

    Example:
        >>> machine = StateMachine(BOOKING_PERIOD_MACHINE, current_state="RESERVED")
        >>> transition = machine.fire("cancel")
        >>> machine.current_state
        'CANCELED'
    """

    def __init__(self, config: StateMachineConfig, current_state: Optional[str] = None):
        self._config = config
        self._current_state = current_state if current_state is not None else config.initial_state
        if self._current_state not in config.states:
            raise ValueError(f"{config.name}: unknown state '{self._current_state}'")
        # from_state -> trigger -> transition
        self._transition_map: Dict[str, Dict[str, StateTransition]] = {}
        for t in config.transitions:
            self._transition_map.setdefault(t.from_state, {})[t.trigger] = t

    @property
    def current_state(self) -> str:
        return self._current_state

    @property
    def is_terminal(self) -> bool:
        return self._current_state in self._config.terminal_states

    def available_transitions(self) -> List[StateTransition]:
        """Transitions declared out of the current state"""
        return list(self._transition_map.get(self._current_state, {}).values())

    def find_transition(self, trigger: str) -> Optional[StateTransition]:
        return self._transition_map.get(self._current_state, {}).get(trigger)

    def can_fire(self, trigger: str) -> bool:
        return self.find_transition(trigger) is not None

    def fire(self, trigger: str) -> Optional[StateTransition]:
        """
        Apply the transition named by trigger

        Returns:
            The applied transition, or None if the trigger is not declared
            for the current state (the state is unchanged)
        """
        transition = self.find_transition(trigger)
        if transition is None:
            logger.warning(
                f"{self._config.name}: trigger '{trigger}' not allowed from {self._current_state}"
            )
            return None

        previous_state = self._current_state
        self._current_state = transition.to_state
        logger.info(f"{self._config.name}: {previous_state} -> {transition.to_state} (trigger: {trigger})")
        return transition


__all__ = [
    "StateTransition",
    "StateMachineConfig",
    "StateMachine",
]
