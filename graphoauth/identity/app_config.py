"""Application configuration for Graph OAuth (graphoauth)."""

import base64
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional

from graphoauth.core.errors import AuthorizationFailure
from graphoauth.identity.authority import Authority, AzureCloudInstance


class ForceTokenRefresh(Enum):
    """Whether silent token acquisition may use the cache."""

    NEVER = "never"
    ONCE = "once"
    ALWAYS = "always"


@dataclass
class AppConfig:
    """Settings shared by every credential of one application registration."""

    client_id: str
    tenant_id: Optional[str] = None
    authority: Optional[Authority] = None
    azure_cloud_instance: AzureCloudInstance = AzureCloudInstance.AZURE_PUBLIC
    scope: List[str] = field(default_factory=list)
    redirect_uri: Optional[str] = None
    extra_query_parameters: Dict[str, str] = field(default_factory=dict)
    extra_header_parameters: Dict[str, str] = field(default_factory=dict)
    force_token_refresh: ForceTokenRefresh = ForceTokenRefresh.NEVER
    log_pii: bool = False

    def __post_init__(self):
        if not self.client_id or not str(self.client_id).strip():
            raise AuthorizationFailure.required("client_id")
        self.client_id = str(self.client_id).strip()

        if self.authority is None:
            self.authority = Authority.parse(self.tenant_id)
        else:
            self.authority = Authority.parse(self.authority)
            if self.tenant_id is None:
                self.tenant_id = self.authority.tenant_id

        if isinstance(self.scope, str):
            self.scope = self.scope.split()
        else:
            self.scope = list(self.scope)

    @property
    def cache_id(self):
        """Key under which this application's tokens are cached."""
        if self.tenant_id:
            raw = f"{self.tenant_id},{self.client_id}"
        else:
            raw = self.client_id
        return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")

    def with_tenant(self, tenant_id):
        return replace(self, tenant_id=tenant_id, authority=Authority.parse(tenant_id))
