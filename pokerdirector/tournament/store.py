"""
Tournament Store.

Owns the current TournamentState for one director session. All changes go
through dispatch(); subscribers are told about every state change.
"""

from typing import Any, Callable, List, Optional, Union

from pokerdirector.logging_config import get_logger

from .actions import ActionType, TournamentAction
from .models import TournamentState
from .notifications import Notifier
from .reducer import tournament_reducer

logger = get_logger(__name__)

Listener = Callable[[TournamentState, TournamentAction], None]
Reducer = Callable[[TournamentState, TournamentAction, Optional[Notifier]], TournamentState]


class TournamentStore:
    """
    Explicit state owner (no module-level globals).

    Usage:
        store = TournamentStore(initial_state())
        unsubscribe = store.subscribe(on_change)
        store.dispatch(ActionType.NEXT_LEVEL)
    """

    def __init__(
        self,
        initial: Optional[TournamentState] = None,
        notifier: Optional[Notifier] = None,
        reducer: Reducer = tournament_reducer,
    ):
        self._state = initial if initial is not None else TournamentState()
        self._notifier = notifier
        self._reducer = reducer
        self._listeners: List[Listener] = []

    @property
    def state(self) -> TournamentState:
        return self._state

    @property
    def notifier(self) -> Optional[Notifier]:
        return self._notifier

    def dispatch(
        self,
        action: Union[TournamentAction, ActionType, str],
        payload: Any = None,
    ) -> TournamentState:
        """
        Run an action through the reducer.

        Args:
            action: A TournamentAction, or an action type combined with payload

        Returns:
            The state after the action.
        """
        if not isinstance(action, TournamentAction):
            action = TournamentAction(action, payload)

        previous = self._state
        self._state = self._reducer(previous, action, self._notifier)

        if self._state is not previous:
            self._notify(action)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, action: TournamentAction) -> None:
        state = self._state
        for listener in list(self._listeners):
            try:
                listener(state, action)
            except Exception:
                logger.exception("store_listener_failed", action_type=str(action.type))
