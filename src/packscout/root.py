"""Registry root document fetch and projection.

Fetches ``<registry>/packages.json`` and projects it into a partially
assembled ``RegistryView``. Shards named by the root are fetched later, during
assembly in ``resolution``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urljoin

import structlog
from pydantic import ValidationError

from packscout.errors import TransportError, TransportErrorCode
from packscout.host_rules import request_options
from packscout.models.registry import FileDescriptor, RegistryRootDocument, RegistryView
from packscout.templates import hash_to_placeholder

if TYPE_CHECKING:
    from packscout.protocols import HostRulesProtocol, TransportProtocol

log = structlog.get_logger()

HOST_TYPE = "packagist"


def root_document_url(registry_url: str) -> str:
    return urljoin(registry_url.rstrip("/") + "/", "packages.json")


def project_root_document(document: RegistryRootDocument) -> RegistryView:
    """Map the published root document onto the view's normalized fields."""
    includes_files = [
        FileDescriptor(key=hash_to_placeholder(name, ref.sha256), hash=ref.sha256)
        for name, ref in (document.includes or {}).items()
    ]
    shard_files = [
        FileDescriptor(key=key, hash=ref.sha256)
        for key, ref in (document.provider_includes or {}).items()
    ]
    provider_hashes = {name: ref.sha256 for name, ref in (document.providers or {}).items()}
    return RegistryView(
        packages=document.packages,
        providers_url_template=document.providers_url,
        provider_package_hashes=provider_hashes,
        shard_file_descriptors=shard_files,
        includes_file_descriptors=includes_files,
    )


async def fetch_registry_root(
    transport: TransportProtocol,
    host_rules: HostRulesProtocol,
    registry_url: str,
) -> RegistryView | None:
    """Fetch and project the registry root. Returns ``None`` on any failure.

    Timeouts, 401/403 and a 404 on the root document itself are expected for
    unusable registries and logged at debug; anything else is a warning.
    """
    url = root_document_url(registry_url)
    options = request_options(host_rules.find(HOST_TYPE, url))
    try:
        response = await transport.get_json(url, auth=options.auth, headers=options.headers or None)
        document = RegistryRootDocument.model_validate(response.body)
    except TransportError as exc:
        if exc.transport_code == TransportErrorCode.TIMEOUT:
            log.debug("registry_root_timeout", registry_url=registry_url)
        elif exc.status_code in (401, 403):
            log.debug(
                "registry_root_unauthorized", registry_url=registry_url, status_code=exc.status_code
            )
        elif exc.status_code == 404 and exc.url.endswith("/packages.json"):
            log.debug("registry_root_not_found", registry_url=registry_url)
        else:
            log.warning(
                "registry_root_download_error",
                registry_url=registry_url,
                code=exc.transport_code,
                status_code=exc.status_code,
                error=exc.message,
            )
        return None
    except ValidationError:
        log.warning("registry_root_invalid", registry_url=registry_url, exc_info=True)
        return None

    view = project_root_document(document)
    log.debug(
        "registry_root_fetched",
        registry_url=registry_url,
        packages=len(view.packages or {}),
        providers=len(view.provider_package_hashes),
        provider_includes=len(view.shard_file_descriptors),
        includes=len(view.includes_file_descriptors),
    )
    return view
