"""
Adapter interfaces for the two external collaborators.

A dealer adapter answers "what does the dealer do now?", a showdown oracle
answers "who won?". Either may be synchronous (offline baselines) or return an
awaitable (network-bound models); the controller handles both. Answers are
raw payloads and are always sanitised before use.
"""

from __future__ import annotations

import importlib
from typing import Any, Awaitable, Mapping, Protocol, Union

from ..schemas import DealerDecisionRequest, ShowdownRequest

RawPayload = Union[Mapping[str, Any], Any]


class DealerAdapter(Protocol):
    name: str

    def decide(self, request: DealerDecisionRequest) -> Union[RawPayload, Awaitable[RawPayload]]:
        ...


class ShowdownOracle(Protocol):
    name: str

    def judge(self, request: ShowdownRequest) -> Union[RawPayload, Awaitable[RawPayload]]:
        ...


class AdapterError(RuntimeError):
    """Raised by adapters that could not produce any answer."""


def load_adapter(dotted_path: str, **kwargs: Any) -> Any:
    """
    Dynamically import an adapter class from a dotted path "module:Class".
    """
    if ":" not in dotted_path:
        raise ValueError("Adapter dotted path must look like 'package.module:ClassName'")
    module_name, class_name = dotted_path.split(":", 1)
    module = importlib.import_module(module_name)
    adapter_cls = getattr(module, class_name)
    return adapter_cls(**kwargs)
