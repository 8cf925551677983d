# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Tests for service creation."""

from __future__ import annotations

import stat

import pytest

from datastore_services.instance.create import create_pipeline
from datastore_services.operations import (
    AlreadyExistsError,
    HookError,
    ImageUnavailableError,
    RuntimeCommandError,
    ValidationError,
)
from datastore_services.service_options import CreateOptions


def _create_args(docker) -> list[str]:
    creates = [call for call in docker.calls if call[0] == "create"]
    assert len(creates) == 1
    return list(creates[0][2:])


def test_create_pipeline_order():
    assert create_pipeline.steps() == [
        "validate_name",
        "validate_not_exists",
        "resolve_service_image",
        "pre_create_hook",
        "make_directories",
        "provision_instance",
        "commit_config",
        "write_database_name",
        "post_create_hook",
        "launch_container",
        "post_create_complete_hook",
    ]


@pytest.mark.asyncio
async def test_create_lays_down_service_root(manager, docker, redis_ref):
    await manager.create_service(datastore_type="redis", name="my-cache", env={})

    ref = redis_ref("my-cache")
    assert ref.folders.config.is_dir()
    assert ref.folders.data.is_dir()
    assert ref.files.links.exists()
    assert ref.files.image.read_text() == "redis"
    assert ref.files.image_version.read_text() == "latest"
    assert ref.files.database_name.read_text() == "my_cache"
    assert ref.files.memory.read_text() == ""

    password = ref.files.password.read_text()
    assert len(password) == 64
    assert stat.S_IMODE(ref.files.password.stat().st_mode) == 0o640
    config = (ref.folders.config / "redis.conf").read_text()
    assert config == f"requirepass {password}"

    container = docker.find("dokku.redis.my-cache")
    assert container is not None
    assert container.status == "running"
    assert ref.files.id.read_text() == container.id


@pytest.mark.asyncio
async def test_create_container_arguments(manager, docker, redis_ref):
    options = CreateOptions(
        memory=512,
        shm_size="256m",
        config_options='--maxmemory 100mb  --appendonly "yes"',
        custom_env="A=1;B=2",
        initial_network="backend",
    )
    await manager.create_service(datastore_type="redis", name="cache", options=options, env={})

    ref = redis_ref("cache")
    args = _create_args(docker)
    assert f"--cidfile={ref.files.id}" in args
    assert f"--env-file={ref.files.env}" in args
    assert "--hostname=dokku.redis.cache" in args
    assert "--label=dokku=service" in args
    assert "--label=dokku.service=redis" in args
    assert "--memory=512m" in args
    assert "--shm-size=256m" in args
    assert "--network=backend" in args
    assert "--network-alias=dokku-redis-cache" in args
    assert "--restart=always" in args
    assert f"--volume={ref.folders.host_config}:/usr/local/etc/redis" in args
    assert args[-9:] == [
        "redis:latest",
        "redis-server", "/usr/local/etc/redis/redis.conf", "--bind", "0.0.0.0",
        "--maxmemory", "100mb", "--appendonly", "yes",
    ]
    assert ref.files.env.read_text() == "A=1\nB=2"


@pytest.mark.asyncio
async def test_create_without_memory_or_network(manager, docker):
    await manager.create_service(datastore_type="redis", name="cache", env={})

    args = _create_args(docker)
    assert not any(arg.startswith("--memory") for arg in args)
    assert not any(arg.startswith("--network") for arg in args)
    assert args[-1] == "0.0.0.0"


@pytest.mark.asyncio
async def test_create_zero_memory_is_unlimited(manager, docker, redis_ref):
    await manager.create_service(
        datastore_type="redis", name="cache", options=CreateOptions(memory=0), env={},
    )

    assert redis_ref("cache").files.memory.read_text() == ""
    assert not any(arg.startswith("--memory") for arg in _create_args(docker))


@pytest.mark.asyncio
async def test_create_rejects_existing_service(manager, docker):
    await manager.create_service(datastore_type="redis", name="cache", env={})

    with pytest.raises(AlreadyExistsError, match="service cache already exists") as exc_info:
        await manager.create_service(datastore_type="redis", name="cache", env={})
    assert exc_info.value.operation == "create"
    assert len([call for call in docker.calls if call[0] == "create"]) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "bad.name", "bad name", "bad/name"])
async def test_create_rejects_invalid_name(manager, settings, name):
    with pytest.raises(ValidationError):
        await manager.create_service(datastore_type="redis", name=name, env={})
    assert not (settings.data_root / "redis").exists()


@pytest.mark.asyncio
async def test_create_unknown_datastore_type(manager):
    with pytest.raises(ValidationError, match="datastore type mongo is not supported"):
        await manager.create_service(datastore_type="mongo", name="db", env={})


@pytest.mark.asyncio
async def test_create_with_pull_disabled(manager, docker, redis_ref):
    options = CreateOptions(image="bar", image_version="1.0")
    with pytest.raises(ImageUnavailableError) as exc_info:
        await manager.create_service(
            datastore_type="redis", name="cache", options=options,
            env={"REDIS_DISABLE_PULL": "true"},
        )

    assert str(exc_info.value).splitlines() == [
        "REDIS_DISABLE_PULL environment variable detected. Not running pull command.",
        "   docker image pull bar:1.0",
        "cache service creation failed",
    ]
    assert not redis_ref("cache").exists()
    assert ("pull", "bar:1.0") not in docker.calls


@pytest.mark.asyncio
async def test_create_pulls_missing_image(manager, docker):
    docker.pullable.add("redis:7.2")
    await manager.create_service(
        datastore_type="redis", name="cache", env={"PLUGIN_IMAGE_VERSION": "7.2"},
    )

    assert ("pull", "redis:7.2") in docker.calls
    assert docker.find("dokku.redis.cache").image == "redis:7.2"


@pytest.mark.asyncio
async def test_create_pull_failure(manager, redis_ref):
    with pytest.raises(ImageUnavailableError, match="failed to pull image redis:nope"):
        await manager.create_service(
            datastore_type="redis", name="cache",
            options=CreateOptions(image_version="nope"), env={},
        )
    assert not redis_ref("cache").exists()


@pytest.mark.asyncio
async def test_create_fires_hooks_in_order(manager, hooks):
    await manager.create_service(datastore_type="redis", name="cache", env={})

    assert [fired[1] for fired in hooks.fired] == [
        "pre-create", "post-create", "post-create-complete",
    ]
    assert hooks.fired[0] == ("service-action", "pre-create", "redis", "cache")


@pytest.mark.asyncio
async def test_create_pre_create_hook_failure_leaves_nothing(manager, hooks, docker, redis_ref):
    hooks.fail_on.add("pre-create")

    with pytest.raises(HookError, match="pre-create"):
        await manager.create_service(datastore_type="redis", name="cache", env={})

    assert not redis_ref("cache").exists()
    assert docker.containers == {}


@pytest.mark.asyncio
async def test_create_attaches_networks(manager, docker):
    options = CreateOptions(
        post_create_networks=["net-a", "net-b"],
        post_start_networks=["net-c"],
    )
    await manager.create_service(datastore_type="redis", name="cache", options=options, env={})

    steps = [call for call in docker.calls if call[0] in ("connect", "start")]
    assert steps == [
        ("connect", "net-a", "dokku.redis.cache", "dokku-redis-cache"),
        ("connect", "net-b", "dokku.redis.cache", "dokku-redis-cache"),
        ("start", "dokku.redis.cache"),
        ("connect", "net-c", "dokku.redis.cache", "dokku-redis-cache"),
    ]
    assert manager.networks.post_create_networks(manager.service_ref("redis", "cache")) == [
        "net-a", "net-b",
    ]


@pytest.mark.asyncio
async def test_create_network_failure_is_reported(manager, docker):
    docker.broken_networks.add("missing")

    with pytest.raises(RuntimeCommandError, match="failed to connect to network missing"):
        await manager.create_service(
            datastore_type="redis", name="cache",
            options=CreateOptions(post_create_networks=["missing"]), env={},
        )


@pytest.mark.asyncio
async def test_create_uses_environment_defaults(manager, docker, redis_ref):
    await manager.create_service(
        datastore_type="redis", name="cache",
        env={"REDIS_CONFIG_OPTIONS": "--save 60 1", "REDIS_CUSTOM_ENV": "X=1"},
    )

    ref = redis_ref("cache")
    assert ref.files.config_options.read_text() == "--save 60 1"
    assert ref.files.env.read_text() == "X=1"
    assert _create_args(docker)[-3:] == ["--save", "60", "1"]


@pytest.mark.asyncio
async def test_create_service_password_from_environment(manager, redis_ref):
    await manager.create_service(
        datastore_type="redis", name="cache", env={"SERVICE_PASSWORD": "s3cret"},
    )
    assert redis_ref("cache").files.password.read_text() == "s3cret"


@pytest.mark.asyncio
async def test_create_reports_progress(manager, progress_log):
    await manager.create_service(datastore_type="redis", name="cache", env={})

    assert ("success", "Redis container created: cache") in progress_log
    assert ("info", "Image: redis:latest") in progress_log
