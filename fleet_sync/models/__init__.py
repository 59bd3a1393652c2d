"""Data models for Fleet resources and plugin output."""

from fleet_sync.models.fleet import Membership, MembershipBinding, PluginResult, Scope

__all__ = ["Membership", "MembershipBinding", "PluginResult", "Scope"]
