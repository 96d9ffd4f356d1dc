"""
Lantern Runtime - connection supervision and event routing.

Components:
- ConnectionSupervisor: connect, reconnect forever, halt on logout
- PeriodicStatusTask: singleton "is active at" status updater
- EventDispatcher: routes inbound traffic to the external handlers
- run_bot: wires everything together for one process
"""

from lantern.runtime.dispatcher import REACTION_EMOJIS, EventDispatcher
from lantern.runtime.flags import ProcessFlags
from lantern.runtime.handlers import Handlers, log_only_handler
from lantern.runtime.process import EXIT_FATAL, EXIT_LOGGED_OUT, EXIT_OK, run_bot
from lantern.runtime.status import LIFE_QUOTES, PeriodicStatusTask, compose_status
from lantern.runtime.supervisor import ConnectionSupervisor, SupervisorOutcome, SupervisorState

__all__ = [
    "ConnectionSupervisor",
    "EXIT_FATAL",
    "EXIT_LOGGED_OUT",
    "EXIT_OK",
    "EventDispatcher",
    "Handlers",
    "LIFE_QUOTES",
    "PeriodicStatusTask",
    "ProcessFlags",
    "REACTION_EMOJIS",
    "SupervisorOutcome",
    "SupervisorState",
    "compose_status",
    "log_only_handler",
    "run_bot",
]
