"""Raw version map → ``ReleaseResult`` normalization."""

from __future__ import annotations

from typing import TYPE_CHECKING

from packscout.models.release import Release, ReleaseResult

if TYPE_CHECKING:
    from packscout.models.registry import RawVersionMap


def canonical_version(raw: str) -> str:
    """Strip one leading ``v``: ``v1.2.3`` → ``1.2.3``."""
    return raw[1:] if raw.startswith("v") else raw


def extract_releases(versions: RawVersionMap | None, name: str | None = None) -> ReleaseResult:
    """Build a ReleaseResult from a version-string → metadata mapping.

    ``homepage`` and ``source_url`` come from the last entry in iteration
    order that defines them. ``time`` is carried through unparsed.
    """
    result = ReleaseResult(name=name)
    if not versions:
        return result

    releases: list[Release] = []
    for raw_version, release in versions.items():
        if not isinstance(release, dict):
            release = {}
        homepage = release.get("homepage")
        if homepage:
            result.homepage = homepage
        source = release.get("source")
        if isinstance(source, dict) and source.get("url"):
            result.source_url = source["url"]
        releases.append(
            Release(
                version=canonical_version(raw_version),
                source_ref=raw_version,
                release_timestamp=release.get("time"),
            )
        )
    result.releases = releases
    return result
