"""Reactive binding engine for signup_portal."""

from signup_portal.services.reactive.command import Command
from signup_portal.services.reactive.keypath import KeyPathAgent, bind
from signup_portal.services.reactive.observable import (
    Lifetime,
    Observable,
    lifetime_of,
    observe_key_path,
    responds_to,
    set_value_for_key_path,
    value_for_key_path,
)
from signup_portal.services.reactive.scheduler import (
    ImmediateScheduler,
    LoopScheduler,
    ManualScheduler,
    Scheduler,
    TimerScheduler,
    main_scheduler,
    set_main_scheduler,
)
from signup_portal.services.reactive.signal import (
    ReplaySignal,
    Signal,
    Subject,
    ValueSignal,
    booleanize,
)
from signup_portal.services.reactive.subscription import (
    CompositeSubscription,
    SerialSubscription,
    Subscription,
)

__all__ = [
    "Signal",
    "Subject",
    "ValueSignal",
    "ReplaySignal",
    "booleanize",
    "Subscription",
    "CompositeSubscription",
    "SerialSubscription",
    "Scheduler",
    "ImmediateScheduler",
    "TimerScheduler",
    "LoopScheduler",
    "ManualScheduler",
    "main_scheduler",
    "set_main_scheduler",
    "Command",
    "Observable",
    "Lifetime",
    "lifetime_of",
    "observe_key_path",
    "value_for_key_path",
    "set_value_for_key_path",
    "responds_to",
    "KeyPathAgent",
    "bind",
]
