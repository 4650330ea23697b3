"""Wire schema for `apiserver.config.k8s.io/v1alpha1` AuthorizationConfiguration files.

Field names match the file format (camelCase). Unknown fields are rejected. No defaults are
filled in: omitted fields arrive at the validator as zero values and are reported there.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gatekeeper.config import types
from gatekeeper.core.duration import coerce_duration

API_GROUP = "apiserver.config.k8s.io"
API_VERSION = f"{API_GROUP}/v1alpha1"
KIND = "AuthorizationConfiguration"


class BaseModelStrict(BaseModel):
    model_config = ConfigDict(extra="forbid")


def _none_to_empty(v: Any) -> Any:
    return "" if v is None else v


class WebhookMatchCondition(BaseModelStrict):
    expression: str = ""
    message: str = ""

    @field_validator("expression", "message", mode="before")
    @classmethod
    def _strs(cls, v: Any) -> Any:
        return _none_to_empty(v)

    def to_internal(self) -> types.WebhookMatchCondition:
        return types.WebhookMatchCondition(expression=self.expression, message=self.message)


class WebhookConnectionInfo(BaseModelStrict):
    type: str = ""
    kube_config_file: Optional[str] = Field(default=None, alias="kubeConfigFile")

    @field_validator("type", mode="before")
    @classmethod
    def _type_str(cls, v: Any) -> Any:
        return _none_to_empty(v)

    def to_internal(self) -> types.WebhookConnectionInfo:
        return types.WebhookConnectionInfo(type=self.type, kube_config_file=self.kube_config_file)


class WebhookConfiguration(BaseModelStrict):
    name: str = ""
    authorized_ttl: timedelta = Field(default=timedelta(0), alias="authorizedTTL")
    unauthorized_ttl: timedelta = Field(default=timedelta(0), alias="unauthorizedTTL")
    timeout: timedelta = Field(default=timedelta(0))
    subject_access_review_version: str = Field(default="", alias="subjectAccessReviewVersion")
    failure_policy: str = Field(default="", alias="failurePolicy")
    connection_info: WebhookConnectionInfo = Field(default_factory=WebhookConnectionInfo, alias="connectionInfo")
    match_conditions: List[WebhookMatchCondition] = Field(default_factory=list, alias="matchConditions")

    @field_validator("authorized_ttl", "unauthorized_ttl", "timeout", mode="before")
    @classmethod
    def _durations(cls, v: Any) -> timedelta:
        if v is None:
            return timedelta(0)
        return coerce_duration(v)

    @field_validator("name", "subject_access_review_version", "failure_policy", mode="before")
    @classmethod
    def _strs(cls, v: Any) -> Any:
        return _none_to_empty(v)

    @field_validator("match_conditions", mode="before")
    @classmethod
    def _conditions(cls, v: Any) -> Any:
        return [] if v is None else v

    def to_internal(self) -> types.WebhookConfiguration:
        return types.WebhookConfiguration(
            name=self.name,
            authorized_ttl=self.authorized_ttl,
            unauthorized_ttl=self.unauthorized_ttl,
            timeout=self.timeout,
            subject_access_review_version=self.subject_access_review_version,
            failure_policy=self.failure_policy,
            connection_info=self.connection_info.to_internal(),
            match_conditions=tuple(mc.to_internal() for mc in self.match_conditions),
        )


class AuthorizerConfiguration(BaseModelStrict):
    type: str = ""
    webhook: Optional[WebhookConfiguration] = None

    @field_validator("type", mode="before")
    @classmethod
    def _type_str(cls, v: Any) -> Any:
        return _none_to_empty(v)

    def to_internal(self) -> types.AuthorizerConfiguration:
        return types.AuthorizerConfiguration(
            type=self.type,
            webhook=self.webhook.to_internal() if self.webhook is not None else None,
        )


class AuthorizationConfiguration(BaseModelStrict):
    api_version: Literal["apiserver.config.k8s.io/v1alpha1"] = Field(alias="apiVersion")
    kind: Literal["AuthorizationConfiguration"]
    authorizers: List[AuthorizerConfiguration] = Field(default_factory=list)

    @field_validator("authorizers", mode="before")
    @classmethod
    def _authorizers(cls, v: Any) -> Any:
        return [] if v is None else v

    def to_internal(self) -> types.AuthorizationConfiguration:
        return types.AuthorizationConfiguration(authorizers=tuple(a.to_internal() for a in self.authorizers))
