#!/usr/bin/env python3
"""Atlas network container and private IP mode resource clients.

Network containers are the per-project, per-provider network allocations
Atlas peers with a cloud VPC.  Every method here builds one path under
``groups/``, performs a single request through the shared transport, and
returns a ``Success`` or ``Failure`` (see ``atlas_api.py``).

    ContainerService      -- list/get/create/update/delete containers.
    PrivateIPModeService  -- read and toggle the project's private IP mode.
    AtlasClient           -- both services bound to one transport.

Endpoints
---------
::

    GET    {gid}/containers?providerName=<name>   -> {results, totalCount}
    GET    {gid}/containers/{id}                  -> Container
    POST   {gid}/containers                       -> Container
    PATCH  {gid}/containers/{id}                  -> Container
    DELETE {gid}/containers/{id}                  -> (empty)
    GET    {gid}/privateIpMode                    -> {enabled}
    PATCH  {gid}/privateIpMode                    -> {enabled}
"""

import logging
from dataclasses import dataclass, field
from urllib.parse import quote

from atlas_api import Result, Success, _BaseAPI, execute

log = logging.getLogger(__name__)

AWS = "AWS"
GCP = "GCP"
AZURE = "AZURE"


def _require_dict(data, kind: str) -> dict:
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object for {kind}, got {type(data).__name__}")
    return data


def _typed(data: dict, key: str, expected: type, kind: str):
    """Return ``data[key]`` if it is None or of ``expected`` type."""
    value = data.get(key)
    # bool is an int subclass
    if value is not None and (
            not isinstance(value, expected)
            or (expected is not bool and isinstance(value, bool))):
        raise ValueError(
            f"Expected {expected.__name__} for {kind}.{key}, "
            f"got {type(value).__name__}")
    return value


# ============================================================================
# Models
# ============================================================================

@dataclass
class Container:
    """A network container.

    ``id`` is empty until Atlas has created the container.  ``vpc_id`` is
    set for AWS containers; ``gcp_project_id`` and ``network_name`` for GCP.
    """

    id: str = ""
    provider_name: str = ""
    atlas_cidr_block: str = ""
    region_name: str = ""
    vpc_id: str = ""
    gcp_project_id: str = ""
    network_name: str = ""
    provisioned: bool = False

    # attribute name -> JSON key
    _WIRE = {
        "id": "id",
        "provider_name": "providerName",
        "atlas_cidr_block": "atlasCidrBlock",
        "region_name": "regionName",
        "vpc_id": "vpcId",
        "gcp_project_id": "gcpProjectId",
        "network_name": "networkName",
        "provisioned": "provisioned",
    }

    def to_dict(self) -> dict:
        """JSON body with empty strings and False omitted."""
        return {
            key: getattr(self, attr)
            for attr, key in self._WIRE.items()
            if getattr(self, attr)
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Container":
        data = _require_dict(data, "Container")
        kwargs = {}
        for attr, key in cls._WIRE.items():
            expected = bool if attr == "provisioned" else str
            value = _typed(data, key, expected, "Container")
            if value is not None:
                kwargs[attr] = value
        return cls(**kwargs)


@dataclass
class PrivateIPMode:
    """Project-wide private IP mode flag."""

    enabled: bool = False

    def to_dict(self) -> dict:
        return {"enabled": True} if self.enabled else {}

    @classmethod
    def from_dict(cls, data: dict) -> "PrivateIPMode":
        data = _require_dict(data, "PrivateIPMode")
        return cls(enabled=_typed(data, "enabled", bool, "PrivateIPMode") or False)


@dataclass
class ContainerList:
    """Envelope of a container listing."""

    results: list[Container] = field(default_factory=list)
    total_count: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "ContainerList":
        data = _require_dict(data, "container list")
        results = _typed(data, "results", list, "container list") or []
        return cls(
            results=[Container.from_dict(c) for c in results],
            total_count=_typed(data, "totalCount", int, "container list") or 0,
        )


def _segment(value: str) -> str:
    """Quote one path segment so ids cannot escape their position."""
    return quote(str(value), safe="")


# ============================================================================
# ContainerService
# ============================================================================

class ContainerService:
    """Network container endpoints of one Atlas transport.

    Example::

        containers = ContainerService(api)
        created = containers.create(group_id, Container(
            provider_name=AWS, atlas_cidr_block="10.8.0.0/21",
            region_name="US_EAST_1")).unwrap()
        containers.delete(group_id, created.id)
    """

    def __init__(self, api: _BaseAPI):
        self._api = api

    def list_page(self, gid: str, provider_name: str) -> Result:
        """List containers with the full envelope as value.

        Returns:
            Success(ContainerList) or Failure.
        """
        return execute(
            self._api, "GET", f"{_segment(gid)}/containers",
            decode=ContainerList.from_dict,
            params={"providerName": provider_name},
        )

    def list(self, gid: str, provider_name: str) -> Result:
        """List all containers for one provider in a project.

        https://docs.atlas.mongodb.com/reference/api/vpc-get-containers-list/

        Args:
            gid: Project (group) ID.
            provider_name: AWS, GCP or AZURE.

        Returns:
            Success(list[Container]) -- empty when there are none -- or Failure.
        """
        result = self.list_page(gid, provider_name)
        if not result.ok:
            return result
        return Success(result.value.results, result.response)

    def get(self, gid: str, container_id: str) -> Result:
        """Get one container.

        https://docs.atlas.mongodb.com/reference/api/vpc-get-container/
        """
        return execute(
            self._api, "GET", f"{_segment(gid)}/containers/{_segment(container_id)}",
            decode=Container.from_dict,
        )

    def create(self, gid: str, container: Container) -> Result:
        """Create a container.  ``container.id`` must be left empty.

        https://docs.atlas.mongodb.com/reference/api/vpc-create-container/

        Returns:
            Success(Container) carrying the id Atlas assigned, or Failure.
        """
        return execute(
            self._api, "POST", f"{_segment(gid)}/containers",
            decode=Container.from_dict,
            body=container.to_dict(),
        )

    def update(self, gid: str, container_id: str, container: Container) -> Result:
        """Update a container.  Only the non-empty fields are sent.

        https://docs.atlas.mongodb.com/reference/api/vpc-update-container/
        """
        return execute(
            self._api, "PATCH", f"{_segment(gid)}/containers/{_segment(container_id)}",
            decode=Container.from_dict,
            body=container.to_dict(),
        )

    def delete(self, gid: str, container_id: str) -> Result:
        """Delete a container.  The Success value is always None."""
        return execute(
            self._api, "DELETE", f"{_segment(gid)}/containers/{_segment(container_id)}",
        )


# ============================================================================
# PrivateIPModeService
# ============================================================================

class PrivateIPModeService:
    """The project's privateIpMode setting.

    https://docs.atlas.mongodb.com/reference/api/set-private-ip-mode-for-project/
    """

    def __init__(self, api: _BaseAPI):
        self._api = api

    def get_private_ip_mode(self, gid: str) -> Result:
        """Read the current setting.  Returns Success(PrivateIPMode)."""
        return execute(
            self._api, "GET", f"{_segment(gid)}/privateIpMode",
            decode=PrivateIPMode.from_dict,
        )

    def _set(self, gid: str, enabled: bool) -> Result:
        log.debug("Setting privateIpMode for %s to %s", gid, enabled)
        # Sent explicitly: PrivateIPMode.to_dict() drops a False flag.
        return execute(
            self._api, "PATCH", f"{_segment(gid)}/privateIpMode",
            decode=PrivateIPMode.from_dict,
            body={"enabled": enabled},
        )

    def enable_private_ip_mode(self, gid: str) -> Result:
        return self._set(gid, True)

    def disable_private_ip_mode(self, gid: str) -> Result:
        return self._set(gid, False)


class AtlasClient:
    """Container and private IP mode services sharing one transport."""

    def __init__(self, api: _BaseAPI):
        self.api = api
        self.containers = ContainerService(api)
        self.private_ip_mode = PrivateIPModeService(api)
