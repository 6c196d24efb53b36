"""Machine inventory lookups used to enrich component values at render time.

The inventory is the list of devices of a Packet (Equinix Metal) project. A
cluster autoscaler creating new workers needs the boot payload of an existing
worker of the cluster, which is derived here from the device list.
"""

from abc import ABC, abstractmethod
import base64
from dataclasses import dataclass, field
import logging
from typing import Any

from mashumaro import DataClassDictMixin, field_options
import requests

from .config import PacketSettings
from .exceptions import (
    DuplicateIdentityError,
    InventoryException,
    NotFoundExternalError,
)

__all__ = [
    "Facility",
    "Device",
    "InventoryClient",
    "PacketClient",
    "find_worker_user_data",
    "WORKER_MARKER",
]

_LOGGER = logging.getLogger(__name__)

WORKER_MARKER = "worker"


@dataclass
class Facility(DataClassDictMixin):
    """The location a device runs in."""

    code: str


@dataclass
class Device(DataClassDictMixin):
    """A machine record from the inventory."""

    hostname: str
    facility: Facility
    user_data: str = field(default="", metadata=field_options(alias="userdata"))


class InventoryClient(ABC):
    """Lists the machines of a project."""

    @abstractmethod
    def list_devices(self, project_id: str) -> list[Device]:
        """Return all devices of the project."""


class PacketClient(InventoryClient):
    """Lists devices through the Packet (Equinix Metal) REST API."""

    def __init__(
        self,
        settings: PacketSettings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize PacketClient."""
        self._settings = settings or PacketSettings()
        self._session = session or requests.Session()

    def _get(self, url: str, params: dict[str, Any] | None) -> dict[str, Any]:
        token = self._settings.auth_token
        if not token:
            raise InventoryException(
                f"Packet API token must be set in ${self._settings.token_env}"
            )
        try:
            response = self._session.get(
                url,
                params=params,
                headers={"X-Auth-Token": token, "Accept": "application/json"},
                timeout=self._settings.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as err:
            raise InventoryException(f"Request to {url} failed: {err}") from err
        except ValueError as err:
            raise InventoryException(f"Invalid response from {url}: {err}") from err

    def list_devices(self, project_id: str) -> list[Device]:
        """Return all devices of the project, following pagination."""
        base = self._settings.api_url.rstrip("/")
        url: str | None = f"{base}/projects/{project_id}/devices"
        params: dict[str, Any] | None = {"per_page": self._settings.per_page}
        devices: list[Device] = []
        while url:
            data = self._get(url, params)
            try:
                devices.extend(Device.from_dict(doc) for doc in data.get("devices", []))
            except (ValueError, TypeError, LookupError) as err:
                raise InventoryException(
                    f"Invalid device listing in project {project_id!r}: {err}"
                ) from err
            href = ((data.get("meta") or {}).get("next") or {}).get("href")
            if href:
                url = href if href.startswith("http") else f"{base}{href}"
                params = None
            else:
                url = None
        _LOGGER.debug("Found %d devices in project %s", len(devices), project_id)
        return devices


def find_worker_user_data(
    cluster_name: str, facility: str, devices: list[Device]
) -> str:
    """Return the base64 encoded user data of a worker of the cluster.

    Only devices in the facility are considered. Two devices sharing a hostname
    in the facility make the target ambiguous and fail the lookup. A worker is a
    device whose hostname contains both the cluster name and `worker`. A worker
    without user data counts as no worker.
    """
    user_data = ""
    hostnames: set[str] = set()

    for device in devices:
        if device.facility.code != facility:
            continue

        if device.hostname in hostnames:
            raise DuplicateIdentityError(device.hostname, facility)
        hostnames.add(device.hostname)

        if cluster_name in device.hostname and WORKER_MARKER in device.hostname:
            user_data = base64.b64encode(device.user_data.encode("utf-8")).decode("ascii")

    if not user_data:
        raise NotFoundExternalError(cluster_name)
    return user_data
