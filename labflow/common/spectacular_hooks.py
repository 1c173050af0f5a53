# labflow/common/spectacular_hooks.py
from __future__ import annotations


def preprocess_exclude_legacy_api(endpoints):
    """
    ROOT_URLCONF includes both:
      /api/v1/  (primary)
      /api/     (alias kept for the desktop client)

    drf-spectacular would list every operation twice (operationId collisions,
    retrieve2/list2 suffixes). Drop the alias from the schema.
    """
    filtered = []
    for path, path_regex, method, callback in endpoints:
        if path.startswith("/api/") and not path.startswith("/api/v1/"):
            continue
        filtered.append((path, path_regex, method, callback))
    return filtered
