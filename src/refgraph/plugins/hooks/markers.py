"""Pluggy markers for refgraph hook specifications and implementations."""

import pluggy

HOOK_NAMESPACE = "refgraph"

hook_spec = pluggy.HookspecMarker(HOOK_NAMESPACE)
"""Marker for refgraph hook specifications."""

hook_impl = pluggy.HookimplMarker(HOOK_NAMESPACE)
"""Marker for refgraph hook implementations."""
