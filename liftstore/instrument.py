"""Store Adapter - instruments an existing store with time-travel history."""

import logging
from typing import Any, Callable, Optional, Protocol

from .config import InstrumentOptions
from .core.actions import INIT, PerformAction
from .core.engine import UNBOUNDED, LiftedReducer, Reducer, reset, unlift_state, validate_max_age
from .core.state import HistoryState

logger = logging.getLogger(__name__)


class Store(Protocol):
    """The store contract consumed and exposed by the instrumentation.

    Stores dispatch ``liftstore.INIT`` when created and after
    ``replace_reducer`` so the lifted reducer can recompute history.
    """

    def dispatch(self, action: Any) -> Any:
        ...

    def get_state(self) -> Any:
        ...

    def subscribe(self, listener: Callable[[], None]) -> Any:
        ...

    def replace_reducer(self, reducer: Reducer) -> None:
        ...


StoreCreator = Callable[..., Store]
Enhancer = Callable[[StoreCreator], StoreCreator]


class StoreTypeError(TypeError):
    """Raised when the devtools store does not hold the declared state type."""

    def __init__(self, expected: type, found: Any):
        self.expected = expected
        self.found = found
        super().__init__(
            f"Devtools store holds {type(found).__name__} states, "
            f"expected {expected.__name__}"
        )


class UnliftedStore:
    """Facade that looks like the original store to application code."""

    def __init__(self, devtools_store: Store, lift_reducer: Callable[[Reducer], LiftedReducer]):
        self._devtools_store = devtools_store
        self._lift_reducer = lift_reducer

    def dispatch(self, action: Any) -> Any:
        """Record ``action`` in history and return it unchanged."""
        self._devtools_store.dispatch(PerformAction(action))
        return action

    def get_state(self) -> Any:
        return unlift_state(self._devtools_store.get_state())

    def subscribe(self, listener: Callable[[], None]) -> Any:
        return self._devtools_store.subscribe(listener)

    def replace_reducer(self, reducer: Reducer) -> None:
        self._devtools_store.replace_reducer(self._lift_reducer(reducer))


class DevTools:
    """Handle on the lifted "devtools" store of an instrumented store.

    The handle is bound once, when the instrumented store is created, and
    can be read any number of times afterwards.

    Usage:
        devtools = DevTools(state_type=int)
        store = create_store(counter, 0, devtools.instrument(max_age=50))

        store.dispatch("INCREMENT")
        devtools.store.dispatch(ToggleAction(1))
        devtools.store.get_state().computed_states
    """

    def __init__(self, state_type: Optional[type] = None):
        self.state_type = state_type
        self._store: Optional[Store] = None

    @classmethod
    def from_options(cls, options: InstrumentOptions) -> "DevTools":
        return cls(state_type=options.state_type)

    @property
    def is_bound(self) -> bool:
        return self._store is not None

    @property
    def store(self) -> Store:
        """The lifted store whose state is a HistoryState.

        Raises:
            RuntimeError: If no store has been instrumented with this handle.
            StoreTypeError: If the lifted store's states are not of ``state_type``.
        """
        if self._store is None:
            raise RuntimeError("DevTools handle is not bound; create a store with instrument() first")

        if self.state_type is not None:
            committed = self._store.get_state().committed_state
            if not isinstance(committed, self.state_type):
                raise StoreTypeError(self.state_type, committed)

        return self._store

    def history(self) -> HistoryState:
        """Current HistoryState of the bound store."""
        return self.store.get_state()

    def instrument(self, max_age: Any = UNBOUNDED) -> Enhancer:
        """Create a store enhancer recording history into this handle.

        Args:
            max_age: History bound, or InstrumentOptions. Reaching it commits
                the oldest action, which is then gone for good. An options
                state_type is adopted when the handle declares none.

        Raises:
            InvalidMaxAgeError: If max_age is smaller than 2.
            ValueError: If the options declare a state_type other than the handle's.
        """
        if isinstance(max_age, InstrumentOptions):
            options = max_age
            if options.state_type is not None:
                if self.state_type is None:
                    self.state_type = options.state_type
                elif self.state_type is not options.state_type:
                    raise ValueError(
                        f"Options declare state_type {options.state_type.__name__}, "
                        f"handle declares {self.state_type.__name__}"
                    )
            max_age = options.max_age
        validate_max_age(max_age)

        def enhancer(create_store: StoreCreator) -> StoreCreator:
            def create(reducer: Reducer, initial_state: Any, enhancer: Optional[Enhancer] = None) -> UnliftedStore:
                if self._store is not None:
                    raise RuntimeError("DevTools handle is already bound to a store")

                def lift_reducer(r: Reducer) -> LiftedReducer:
                    return LiftedReducer(r, initial_state, max_age)

                devtools_store = create_store(lift_reducer(reducer), reset(initial_state), enhancer)

                history = devtools_store.get_state()
                if len(history.computed_states) != len(history.staged_action_ids):
                    devtools_store.dispatch(INIT)

                self._store = devtools_store
                logger.debug("Instrumented store bound (max_age=%s)", max_age)
                return UnliftedStore(devtools_store, lift_reducer)

            return create

        return enhancer
