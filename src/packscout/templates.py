"""Placeholder expansion for registry file-name and URL templates.

Supported placeholders:
  %hash%     content hash of a shard or provider file
  %package%  package name (vendor/name)

Each placeholder present in ``values`` replaces its first occurrence, as the
registries only ever emit one of each. Unknown placeholders are left intact.
"""

from __future__ import annotations

PLACEHOLDERS = frozenset({"hash", "package"})


def expand_template(template: str, **values: str) -> str:
    unknown = set(values) - PLACEHOLDERS
    if unknown:
        raise ValueError(f"Unsupported template placeholders: {sorted(unknown)}")
    result = template
    for name, value in values.items():
        result = result.replace(f"%{name}%", value, 1)
    return result


def hash_to_placeholder(file_name: str, content_hash: str) -> str:
    """Turn ``p/all$abc.json`` into ``p/all$%hash%.json`` for hash ``abc``."""
    return file_name.replace(content_hash, "%hash%", 1)
