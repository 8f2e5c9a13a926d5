"""
Mini-app metadata for the "give reputation" action.

The link renderer fetches GET /api/<route> and builds its own form from this
descriptor: one dynamic action with a single required text parameter
(contentCreator), which it then POSTs back to the same path.
"""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from wallet_reputation.config import Deployment, Settings

MAX_ACTIONS = 4


def _check_http_url(value: str) -> str:
    if not value.startswith(("http://", "https://")) or not value.split("://", 1)[1]:
        raise ValueError(f"expected an http(s) URL, got {value!r}")
    return value


class ActionParam(BaseModel):
    name: str = Field(..., min_length=1)
    label: str = Field(..., min_length=1)
    type: Literal["text"] = "text"
    required: bool = True
    description: str = ""


class ChainContext(BaseModel):
    source: str = Field(..., min_length=1)


class DynamicAction(BaseModel):
    type: Literal["dynamic"] = "dynamic"
    label: str = Field(..., min_length=1)
    description: str = ""
    chains: ChainContext
    path: str
    params: List[ActionParam] = Field(..., min_length=1)

    @field_validator("path")
    @classmethod
    def path_is_absolute(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("action path must start with '/'")
        return v

    @model_validator(mode="after")
    def unique_param_names(self) -> "DynamicAction":
        names = [p.name for p in self.params]
        if len(names) != len(set(names)):
            raise ValueError(f"duplicate parameter names in action {self.label!r}")
        return self


class ActionMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    icon: str
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    base_url: str = Field(..., alias="baseUrl")
    actions: List[DynamicAction] = Field(..., min_length=1, max_length=MAX_ACTIONS)

    @field_validator("url", "icon", "base_url")
    @classmethod
    def check_urls(cls, v: str) -> str:
        return _check_http_url(v)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


def server_url(host: str | None, forwarded_proto: str | None) -> str:
    # chained proxies send a list, e.g. "https,http"
    proto = (forwarded_proto or "").split(",")[0].strip().lower()
    if proto not in ("http", "https"):
        proto = "http"
    return f"{proto}://{host or 'localhost:8000'}"


def build_action_metadata(deployment: Deployment, settings: Settings, base_url: str) -> ActionMetadata:
    """Raises pydantic.ValidationError if any field is unusable."""
    return ActionMetadata(
        url=settings.app_url,
        icon=settings.icon_url,
        title="Permanent Reputation",
        description="Give a permanent, on-chain reputation point to an Ethereum content creator.",
        baseUrl=base_url,
        actions=[
            DynamicAction(
                label="Give Reputation",
                description="Enter the address of the creator you want to give reputation to.",
                chains=ChainContext(source=deployment.source_chain),
                path=deployment.api_path,
                params=[
                    ActionParam(
                        name="contentCreator",
                        label="Creator's Address",
                        description="Enter the Ethereum address of the content creator.",
                    )
                ],
            )
        ],
    )
