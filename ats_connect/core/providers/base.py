"""
Base provider adapter.

An adapter describes how to talk to one ATS: which headers authenticate a
request, where each collection lives and which query parameters go with it.
Adapters are pure and total: a connection with missing credentials still
yields headers and URLs (with empty values), it just will not authenticate.
"""

import base64
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

from ats_connect.data.models.connection import AtsConnection
from ats_connect.utils.constants import PROVIDER_DISPLAY_NAMES, AtsProvider, EntityType

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def basic_auth(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class ProviderAdapter(ABC):
    """
    Abstract base class for provider adapters.

    Subclasses declare their paths and credential keys as class attributes
    and implement :meth:`auth_headers`.
    """

    provider: Optional[AtsProvider] = None

    # Credential keys the provider needs to authenticate
    credential_keys: tuple[str, ...] = ()

    # Collection paths; "{key}" is filled from the connection's credentials
    jobs_path: str = "/jobs"
    candidates_path: str = "/candidates"
    applications_path: str = "/applications"

    # Where the record list sits in the response body, when not a common key
    collection_paths: dict[EntityType, str] = {}

    # Provider-native payload paths for canonical fields
    field_paths: dict[EntityType, dict[str, str]] = {}

    @property
    def display_name(self) -> str:
        if self.provider is None:
            return "Generic ATS"
        return PROVIDER_DISPLAY_NAMES[self.provider.value]

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    @abstractmethod
    def auth_headers(self, connection: AtsConnection) -> dict[str, str]:
        """Provider-specific authentication headers."""
        pass

    def headers(self, connection: AtsConnection) -> dict[str, str]:
        """Full header set for a provider request."""
        headers = {"Content-Type": "application/json"}
        headers.update(self.auth_headers(connection))
        return headers

    def missing_credentials(self, connection: AtsConnection) -> list[str]:
        """Credential keys this provider needs that the connection lacks."""
        return [key for key in self.credential_keys if not connection.credential(key)]

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    def _render(self, path: str, connection: AtsConnection) -> str:
        return _PLACEHOLDER.sub(lambda m: connection.credential(m.group(1)), path)

    def endpoint(self, connection: AtsConnection, entity_type: EntityType) -> str:
        path = {
            EntityType.JOB: self.jobs_path,
            EntityType.CANDIDATE: self.candidates_path,
            EntityType.APPLICATION: self.applications_path,
        }[EntityType(entity_type)]
        return f"{connection.base_url}{self._render(path, connection)}"

    def jobs_endpoint(self, connection: AtsConnection) -> str:
        return self.endpoint(connection, EntityType.JOB)

    def candidates_endpoint(self, connection: AtsConnection) -> str:
        return self.endpoint(connection, EntityType.CANDIDATE)

    def applications_endpoint(self, connection: AtsConnection) -> str:
        return self.endpoint(connection, EntityType.APPLICATION)

    # -------------------------------------------------------------------------
    # Query Parameters
    # -------------------------------------------------------------------------

    def default_params(
        self,
        connection: AtsConnection,
        filters: Optional[dict[str, Any]] = None,
        entity_type: EntityType = EntityType.JOB,
    ) -> dict[str, str]:
        """
        Query parameters for a collection fetch.

        ``configuration.default_params`` always applies. Job fetches add the
        location and keyword filters under the parameter names configured in
        ``field_mapping`` (``location_param``/``keywords_param``), and the
        department filter as ``department``.
        """
        configured = connection.configuration.get("default_params")
        params = {
            str(key): str(value)
            for key, value in (configured.items() if isinstance(configured, dict) else [])
            if value is not None
        }

        if EntityType(entity_type) is EntityType.JOB and filters:
            for filter_name, mapping_key in (("location", "location_param"), ("keywords", "keywords_param")):
                param_name = connection.field_mapping.get(mapping_key)
                if param_name and filters.get(filter_name):
                    params[str(param_name)] = str(filters[filter_name])
            if filters.get("department"):
                params["department"] = str(filters["department"])

        return params

    # -------------------------------------------------------------------------
    # Payload Shape
    # -------------------------------------------------------------------------

    def collection_path(self, entity_type: EntityType) -> Optional[str]:
        return self.collection_paths.get(EntityType(entity_type))

    def default_field_paths(self, entity_type: EntityType) -> dict[str, str]:
        return dict(self.field_paths.get(EntityType(entity_type), {}))
