"""Change observation: observable objects and reactions.

An ``Observable`` notifies its listeners whenever a public attribute is
assigned. A ``Reaction`` re-evaluates a derived value on every notification
and calls its effect with ``(new, old)`` only when the value changed by
equality.

Usage:
    class Counter(Observable):
        def __init__(self):
            self.value = 0

    counter = Counter()
    dispose = reaction(counter, lambda: counter.value, lambda new, old: print(new))
    counter.value = 1  # prints 1
    dispose()
"""

from __future__ import annotations

import asyncio
import operator
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from modelsync.core.types import Disposer

T = TypeVar("T")

Listener = Callable[[str], None]
"""Called with the name of the attribute that was assigned."""


class Observable:
    """Mixin that turns public attribute assignment into change notifications.

    Attributes starting with an underscore are private state and never notify.
    Listeners run synchronously, in subscription order, after the assignment.
    """

    def __setattr__(self, name: str, value: Any) -> None:
        object.__setattr__(self, name, value)
        if not name.startswith("_"):
            self._notify_changed(name)

    def _notify_changed(self, name: str) -> None:
        listeners: list[Listener] | None = self.__dict__.get("_listeners")
        if not listeners:
            return
        # Copy: a listener may dispose itself (or others) while running.
        for listener in list(listeners):
            listener(name)

    def subscribe(self, listener: Listener) -> Disposer:
        """Register a change listener.

        Args:
            listener: Callable invoked with the changed attribute name.

        Returns:
            Disposer that removes the listener. Calling it twice is a no-op.
        """
        listeners: list[Listener] | None = self.__dict__.get("_listeners")
        if listeners is None:
            listeners = []
            object.__setattr__(self, "_listeners", listeners)
        listeners.append(listener)

        def dispose() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return dispose


class Reaction(Generic[T]):
    """Observe a derived value of an Observable and react to its changes.

    The expression is evaluated once at construction to seed the previous
    value; the effect is not called for that first evaluation.

    Args:
        source: Object whose changes trigger re-evaluation.
        expression: Computes the observed value.
        effect: Called with ``(new_value, old_value)`` when the value changes.
        equals: Equality used to detect changes. Defaults to ``==``.
    """

    def __init__(
        self,
        source: Observable,
        expression: Callable[[], T],
        effect: Callable[[T, T], None],
        equals: Callable[[T, T], bool] = operator.eq,
    ) -> None:
        self._expression = expression
        self._effect = effect
        self._equals = equals
        self._value = expression()
        self._disposed = False
        self._unsubscribe = source.subscribe(self._on_change)

    @property
    def value(self) -> T:
        """Last observed value."""
        return self._value

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _on_change(self, _name: str) -> None:
        if self._disposed:
            return
        new_value = self._expression()
        if self._equals(new_value, self._value):
            return
        old_value = self._value
        self._value = new_value
        self._effect(new_value, old_value)

    def dispose(self) -> None:
        """Permanently detach from the source."""
        if self._disposed:
            return
        self._disposed = True
        self._unsubscribe()


def reaction(
    source: Observable,
    expression: Callable[[], T],
    effect: Callable[[T, T], None],
    equals: Callable[[T, T], bool] = operator.eq,
) -> Disposer:
    """Create a Reaction and return its disposer.

    Args:
        source: Object whose changes trigger re-evaluation.
        expression: Computes the observed value.
        effect: Called with ``(new_value, old_value)`` on change.
        equals: Equality used to detect changes.

    Returns:
        Disposer that permanently detaches the reaction.
    """
    return Reaction(source, expression, effect, equals).dispose


class Debounced(Generic[T]):
    """Trailing-edge debounce for a two-argument effect.

    Each call restarts the timer; when the quiet period elapses the effect
    runs once with the arguments of the latest call. Intermediate arguments
    are dropped. Requires a running asyncio event loop.

    Args:
        effect: Callable receiving ``(new_value, old_value)``.
        delay: Quiet period in seconds.
    """

    def __init__(self, effect: Callable[[T, T], None], delay: float) -> None:
        self._effect = effect
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self, new_value: T, old_value: T) -> None:
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self._delay, self._fire, new_value, old_value)

    def _fire(self, new_value: T, old_value: T) -> None:
        self._handle = None
        self._effect(new_value, old_value)

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
