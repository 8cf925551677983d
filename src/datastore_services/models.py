# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pydantic models for the subset of ``docker container inspect`` we read.

Only the fields used by the lifecycle code are declared; everything else
in the engine's JSON is ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _EngineModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ContainerState(_EngineModel):
    status: str = Field("", alias="Status")
    running: bool = Field(False, alias="Running")
    exit_code: int | None = Field(None, alias="ExitCode")


class ContainerConfig(_EngineModel):
    image: str = Field("", alias="Image")
    labels: dict[str, str] | None = Field(None, alias="Labels")


class EndpointSettings(_EngineModel):
    ip_address: str = Field("", alias="IPAddress")
    aliases: list[str] | None = Field(None, alias="Aliases")


class NetworkSettings(_EngineModel):
    ip_address: str = Field("", alias="IPAddress")
    networks: dict[str, EndpointSettings] | None = Field(None, alias="Networks")


class RestartPolicy(_EngineModel):
    name: str = Field("", alias="Name")


class HostConfig(_EngineModel):
    restart_policy: RestartPolicy | None = Field(None, alias="RestartPolicy")


class ContainerInspect(_EngineModel):
    """One element of the ``docker container inspect`` result array."""

    id: str = Field(alias="Id")
    name: str = Field("", alias="Name")
    state: ContainerState = Field(default_factory=ContainerState, alias="State")
    config: ContainerConfig = Field(default_factory=ContainerConfig, alias="Config")
    network_settings: NetworkSettings = Field(
        default_factory=NetworkSettings, alias="NetworkSettings"
    )
    host_config: HostConfig = Field(default_factory=HostConfig, alias="HostConfig")

    @property
    def status(self) -> str:
        return self.state.status

    @property
    def is_running(self) -> bool:
        return self.state.status.lower() == "running"

    @property
    def ip_address(self) -> str:
        """Address on the default bridge, else the first attached network."""
        if self.network_settings.ip_address:
            return self.network_settings.ip_address
        for endpoint in (self.network_settings.networks or {}).values():
            if endpoint.ip_address:
                return endpoint.ip_address
        return ""
