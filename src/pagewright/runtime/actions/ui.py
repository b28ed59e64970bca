"""UI intent actions: navigate, showMessage, openModal, closeModal.

None of these touch the render tree. They are forwarded as ``UiIntent``
values to the host's intent handler, which owns routing, toasts and modals.
"""

from __future__ import annotations

from typing import Any

from pagewright.runtime.actions.base import ActionInvocation, UiIntent, maybe_await

__all__ = [
    "execute_navigate",
    "execute_show_message",
    "execute_open_modal",
    "execute_close_modal",
]


async def _emit(invocation: ActionInvocation, payload: dict[str, Any]) -> UiIntent:
    intent = UiIntent(kind=invocation.action.type, payload=payload)
    await maybe_await(invocation.services.intent_handler(intent))
    return intent


async def execute_navigate(invocation: ActionInvocation) -> UiIntent:
    payload = {"url": invocation.require("url")}
    if invocation.config.get("replace"):
        payload["replace"] = True
    return await _emit(invocation, payload)


async def execute_show_message(invocation: ActionInvocation) -> UiIntent:
    return await _emit(
        invocation,
        {
            "message": invocation.require("message"),
            "type": invocation.config.get("type") or "info",
        },
    )


async def execute_open_modal(invocation: ActionInvocation) -> UiIntent:
    payload: dict[str, Any] = {"modalId": invocation.require("modalId")}
    if "props" in invocation.config:
        payload["props"] = invocation.config["props"]
    return await _emit(invocation, payload)


async def execute_close_modal(invocation: ActionInvocation) -> UiIntent:
    return await _emit(
        invocation, {"modalId": invocation.config.get("modalId") or "current"}
    )
