"""Delegation of page permission requests to the host's microphone access."""

from __future__ import annotations

from enum import Enum

MICROPHONE_NOTICE = "Mikrofon-Berechtigung erforderlich"


class PermissionDecision(str, Enum):
    GRANT = "grant"
    DENY = "deny"


def decide(*, wants_microphone: bool, host_has_microphone: bool) -> PermissionDecision:
    """Grant microphone requests only while the host itself can record.

    Requests for anything other than the microphone are denied.
    """
    if wants_microphone and host_has_microphone:
        return PermissionDecision.GRANT
    return PermissionDecision.DENY


def needs_notice(*, wants_microphone: bool, decision: PermissionDecision) -> bool:
    return wants_microphone and decision is PermissionDecision.DENY
