"""Commands queued against a REPL process.

librepl.command
~~~~~~~~~~~~~~~

A :class:`Command` bundles caller-owned state with three callbacks. The
driver calls ``issue`` once when the command becomes current, ``live`` as
partial output accumulates, and ``complete`` once with the final response.
"""

from __future__ import annotations

import dataclasses
import typing as t

StateT = t.TypeVar("StateT")


def _never_again(state: t.Any, response: str) -> bool:
    return False


def _ignore_response(state: t.Any, response: str) -> None:
    return None


@dataclasses.dataclass(frozen=True, eq=False, repr=False)
class Command(t.Generic[StateT]):
    """Unit of work sent to a REPL process.

    Parameters
    ----------
    state : object
        Opaque state owned by the caller. Its contents may mutate; the
        command itself never does.
    issue : callable
        ``issue(state)``, invoked once when the command becomes current.
        Usually writes a request through :meth:`librepl.process.Process.send`.
    live : callable, optional
        ``live(state, accumulated_response) -> bool``, invoked as output
        arrives. Returning ``True`` asks the driver to call it again within
        the same drain cycle.
    complete : callable, optional
        ``complete(state, final_response)``, invoked at most once when the
        sentinel is seen. Never invoked if the process dies first.

    Examples
    --------
    >>> seen = []
    >>> cmd = Command(
    ...     state=seen,
    ...     issue=lambda state: None,
    ...     complete=lambda state, response: state.append(response),
    ... )
    >>> cmd.complete(cmd.state, "ok")
    >>> seen
    ['ok']
    """

    state: StateT
    issue: t.Callable[[StateT], None]
    live: t.Callable[[StateT, str], bool] = _never_again
    complete: t.Callable[[StateT, str], None] = _ignore_response

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(state={type(self.state).__name__})"

    def run_issue(self) -> None:
        """Invoke ``issue`` with this command's state."""
        self.issue(self.state)

    def run_live(self, response: str) -> bool:
        """Invoke ``live`` with this command's state."""
        return bool(self.live(self.state, response))

    def run_complete(self, response: str) -> None:
        """Invoke ``complete`` with this command's state."""
        self.complete(self.state, response)


__all__ = ["Command"]
