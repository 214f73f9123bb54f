import functools
import logging
from abc import ABC
from typing import Callable, List, NamedTuple

from pydispatch import dispatcher
from pydispatch.errors import DispatcherKeyError

from appreg.signal_constants import Signal

logger = logging.getLogger(__name__)


def _lifecycle_step(phase: str, step_name: str):
    def decorator(func):
        @functools.wraps(func)
        def wrapper(obj_self, *args, **kwargs):
            owner = obj_self.__class__.__name__
            logger.debug(f'[{owner}] {phase} started')
            getattr(obj_self, step_name)()
            retval = func(obj_self, *args, **kwargs)
            logger.debug(f'[{owner}] {phase} done')
            return retval
        return wrapper
    return decorator


# Decorates a component's "start" method: the shutdown listener is connected before the body runs
start_func = _lifecycle_step('Startup', 'start_lifecycle')

# Decorates a component's "shutdown" method: every listener is disconnected before the body runs
stop_func = _lifecycle_step('Shutdown', 'shutdown_lifecycle')


class _Subscription(NamedTuple):
    signal: Signal
    receiver: Callable
    sender: object


class HasLifecycle(ABC):
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS HasLifecycle

    Base for components which listen to dispatcher signals. Every subscription made through
    connect_dispatch_listener() is remembered, and all of them are dropped when the component shuts down, whether
    directly or because Signal.SHUTDOWN_APP was sent.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self):
        self._subscriptions: List[_Subscription] = []
        self.was_shutdown = False

    def connect_dispatch_listener(self, signal: Signal, receiver: Callable, sender=dispatcher.Any, weak=True):
        subscription = _Subscription(signal, receiver, sender or dispatcher.Any)
        self._subscriptions.append(subscription)
        logger.debug(f'[{self.__class__.__name__}] Listening for {signal.name} from {subscription.sender} (weak={weak})')
        dispatcher.connect(signal=signal, receiver=receiver, sender=subscription.sender, weak=weak)

    def start_lifecycle(self):
        """Called by @start_func"""
        self.connect_dispatch_listener(signal=Signal.SHUTDOWN_APP, receiver=self.shutdown_lifecycle)

    def shutdown_lifecycle(self):
        """Called by @stop_func, or on Signal.SHUTDOWN_APP. Safe to call more than once"""
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            try:
                dispatcher.disconnect(signal=subscription.signal, receiver=subscription.receiver, sender=subscription.sender)
            except DispatcherKeyError:
                # weakly-held receiver which was already collected
                logger.debug(f'[{self.__class__.__name__}] Listener for {subscription.signal.name} was already gone')
        self.was_shutdown = True
