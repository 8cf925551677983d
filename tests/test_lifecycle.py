# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Tests for start, stop, destroy, enter, logs and the query operations."""

from __future__ import annotations

import asyncio

import pytest

from datastore_services.operations import (
    ConflictError,
    HookError,
    ImageUnavailableError,
    NotFoundError,
    NotRunningError,
)


async def _create(manager, name: str = "cache") -> None:
    await manager.create_service(datastore_type="redis", name=name, env={})


# ---------------------------------------------------------------------------
# Start
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_start_running_service_only_refreshes_id(manager, docker, redis_ref):
    await _create(manager)
    ref = redis_ref()
    ref.files.id.write_text("stale")
    before = docker.mutations()

    await manager.start_service(datastore_type="redis", name="cache")
    await manager.start_service(datastore_type="redis", name="cache")

    assert docker.mutations() == before
    assert ref.files.id.read_text() == docker.find("dokku.redis.cache").id


@pytest.mark.asyncio
async def test_start_exited_container(manager, docker):
    await _create(manager)
    docker.find("dokku.redis.cache").status = "exited"

    await manager.start_service(datastore_type="redis", name="cache")

    assert docker.find("dokku.redis.cache").status == "running"
    assert len([call for call in docker.calls if call[0] == "create"]) == 1


@pytest.mark.asyncio
async def test_start_recreates_missing_container(manager, docker, redis_ref):
    await _create(manager)
    old_id = docker.find("dokku.redis.cache").id
    del docker.containers[old_id]

    await manager.start_service(datastore_type="redis", name="cache")

    container = docker.find("dokku.redis.cache")
    assert container.status == "running"
    assert container.id != old_id
    assert redis_ref().files.id.read_text() == container.id


@pytest.mark.asyncio
async def test_start_uses_persisted_image(manager, docker, redis_ref):
    await _create(manager)
    del docker.containers[docker.find("dokku.redis.cache").id]
    ref = redis_ref()
    ref.files.image.write_text("bar")
    ref.files.image_version.write_text("1.0")
    docker.images.add("bar:1.0")

    await manager.start_service(datastore_type="redis", name="cache")

    assert docker.find("dokku.redis.cache").image == "bar:1.0"


@pytest.mark.asyncio
async def test_start_does_not_pull(manager, docker, redis_ref):
    await _create(manager)
    del docker.containers[docker.find("dokku.redis.cache").id]
    docker.images.clear()
    docker.pullable.add("redis:latest")

    with pytest.raises(ImageUnavailableError, match="redis:latest"):
        await manager.start_service(datastore_type="redis", name="cache")
    assert not any(call[0] == "pull" for call in docker.calls)


@pytest.mark.asyncio
async def test_start_missing_service(manager):
    with pytest.raises(NotFoundError, match="service ghost does not exist"):
        await manager.start_service(datastore_type="redis", name="ghost")


# ---------------------------------------------------------------------------
# Stop
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_stop_removes_container_and_ambassador(manager, docker, redis_ref):
    await _create(manager)
    await manager.expose_service(datastore_type="redis", name="cache", ports=["8000"])

    await manager.stop_service(datastore_type="redis", name="cache")

    assert docker.containers == {}
    assert redis_ref().exists()
    assert ("update", "dokku.redis.cache", "no") in docker.calls


@pytest.mark.asyncio
async def test_stop_without_container_is_noop(manager, docker):
    await _create(manager)
    del docker.containers[docker.find("dokku.redis.cache").id]
    before = docker.mutations()

    await manager.stop_service(datastore_type="redis", name="cache")

    assert docker.mutations() == before


@pytest.mark.asyncio
async def test_stop_then_start(manager, docker):
    await _create(manager)
    await manager.stop_service(datastore_type="redis", name="cache")
    await manager.start_service(datastore_type="redis", name="cache")

    assert docker.find("dokku.redis.cache").status == "running"


# ---------------------------------------------------------------------------
# Destroy
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_destroy_removes_everything(manager, docker, hooks, store, redis_ref):
    await _create(manager)
    await manager.expose_service(datastore_type="redis", name="cache", ports=["8000"])

    await manager.destroy_service(datastore_type="redis", name="cache")

    assert not redis_ref().exists()
    assert docker.containers == {}
    assert not store.has_properties("redis", "cache")
    assert [fired[1] for fired in hooks.fired][-2:] == ["pre-delete", "post-delete"]
    assert ("run-rm", "busybox:1.37.0-uclibc", "chmod", "777", "-R", "/config", "/data") in docker.calls


@pytest.mark.asyncio
async def test_destroy_after_container_removed_by_hand(manager, docker, redis_ref):
    await _create(manager)
    docker.containers.clear()

    await manager.destroy_service(datastore_type="redis", name="cache")

    assert not redis_ref().exists()
    assert not any(call[0] == "rm" for call in docker.calls)


@pytest.mark.asyncio
async def test_destroy_missing_service(manager):
    with pytest.raises(NotFoundError, match="service ghost does not exist"):
        await manager.destroy_service(datastore_type="redis", name="ghost")


@pytest.mark.asyncio
async def test_destroy_linked_service_is_refused(manager, docker, redis_ref):
    await _create(manager)
    await manager.link_app(datastore_type="redis", name="cache", app="web")

    with pytest.raises(ConflictError, match="cannot delete linked service"):
        await manager.destroy_service(datastore_type="redis", name="cache")

    assert redis_ref().exists()
    assert docker.find("dokku.redis.cache") is not None


@pytest.mark.asyncio
async def test_destroy_can_be_rerun_after_partial_failure(manager, docker, store, hooks, redis_ref):
    await _create(manager)
    hooks.fail_on.add("post-delete")

    with pytest.raises(HookError):
        await manager.destroy_service(datastore_type="redis", name="cache")
    assert not redis_ref().exists()

    # Leftover property from an interrupted run
    store.property_write("redis", "cache", "initial-network", "backend")
    hooks.fail_on.clear()
    await manager.destroy_service(datastore_type="redis", name="cache")

    assert not store.has_properties("redis", "cache")
    resets = [call for call in docker.calls if call[:2] == ("run-rm", "busybox:1.37.0-uclibc")]
    assert len(resets) == 1


# ---------------------------------------------------------------------------
# Enter and logs
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_enter_runs_shell(manager, docker):
    await _create(manager)
    container_id = docker.find("dokku.redis.cache").id

    await manager.enter_service(datastore_type="redis", name="cache")
    await manager.enter_service(datastore_type="redis", name="cache", command=["redis-cli", "ping"])

    assert ("exec", container_id, "/bin/bash") in docker.calls
    assert ("exec", container_id, "redis-cli", "ping") in docker.calls


@pytest.mark.asyncio
async def test_enter_requires_running_container(manager, docker):
    await _create(manager)
    docker.find("dokku.redis.cache").status = "exited"

    with pytest.raises(NotRunningError, match="service cache is not running"):
        await manager.enter_service(datastore_type="redis", name="cache")


@pytest.mark.asyncio
async def test_logs_arguments(manager, docker):
    await _create(manager)
    container_id = docker.find("dokku.redis.cache").id

    await manager.service_logs(datastore_type="redis", name="cache")
    await manager.service_logs(datastore_type="redis", name="cache", num=0, tail=True)

    assert ("logs", container_id, "100", "False") in docker.calls
    assert ("logs", container_id, "None", "True") in docker.calls


@pytest.mark.asyncio
async def test_logs_cancellation_is_success(manager, docker, monkeypatch):
    await _create(manager)

    async def cancelled_logs(ref, tail=None, follow=False):
        raise asyncio.CancelledError()

    monkeypatch.setattr(docker, "logs", cancelled_logs)
    await manager.service_logs(datastore_type="redis", name="cache", tail=True)


@pytest.mark.asyncio
async def test_logs_without_container(manager, docker):
    await _create(manager)
    docker.containers.clear()

    with pytest.raises(NotFoundError, match="container cache does not exist"):
        await manager.service_logs(datastore_type="redis", name="cache")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_service_info(manager, docker, redis_ref):
    await _create(manager)
    await manager.link_app(datastore_type="redis", name="cache", app="web")
    ref = redis_ref()

    info = await manager.service_info("redis", "cache")

    assert info == {
        "config-dir": str(ref.folders.config),
        "config-options": "",
        "data-dir": str(ref.folders.data),
        "dsn": "redis://dokku-redis-cache:6379",
        "exposed-ports": "-",
        "id": docker.find("dokku.redis.cache").id,
        "internal-ip": "172.17.0.2",
        "initial-network": "",
        "links": "web",
        "post-create-network": "",
        "post-start-network": "",
        "service-root": str(ref.folders.root),
        "status": "running",
        "version": "redis:latest",
    }


@pytest.mark.asyncio
async def test_service_info_without_container(manager, docker):
    await _create(manager)
    docker.containers.clear()

    info = await manager.service_info("redis", "cache")

    assert info["status"] == "missing"
    assert info["internal-ip"] == ""


@pytest.mark.asyncio
async def test_list_services(manager):
    assert await manager.list_services("redis") == []

    await _create(manager, "beta")
    await _create(manager, "alpha")

    assert await manager.list_services("redis") == ["alpha", "beta"]


@pytest.mark.asyncio
async def test_wait_for_ready(manager, docker):
    await _create(manager)

    await manager.wait_for_ready(datastore_type="redis", name="cache")

    assert ("run-rm", "dokku/wait:0.9.3", "-c", "dokku-redis-cache:6379") in docker.calls


@pytest.mark.asyncio
async def test_service_info_follows_live_container(manager, docker, redis_ref):
    await _create(manager)
    del docker.containers[docker.find("dokku.redis.cache").id]
    replacement = docker.add_container("dokku.redis.cache", image="redis:7")

    info = await manager.service_info("redis", "cache")

    assert info["id"] == replacement.id
    assert info["status"] == "running"
    assert info["internal-ip"] == "172.17.0.2"
    assert info["version"] == "redis:7"


@pytest.mark.asyncio
async def test_service_info_after_stop(manager):
    await _create(manager)
    await manager.stop_service(datastore_type="redis", name="cache")

    info = await manager.service_info("redis", "cache")

    assert info["id"] == ""
    assert info["status"] == "missing"


@pytest.mark.asyncio
async def test_list_services_skips_foreign_directories(manager, settings):
    await _create(manager)
    (settings.data_root / "redis" / "cache.bak").mkdir()
    (settings.data_root / "redis" / "lost+found").mkdir()
    (settings.data_root / "redis" / "notes.txt").write_text("")

    assert await manager.list_services("redis") == ["cache"]


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["paused", "dead", "restarting"])
async def test_start_refuses_unstartable_container(manager, docker, status):
    await _create(manager)
    docker.find("dokku.redis.cache").status = status
    before = docker.mutations()

    with pytest.raises(ConflictError, match=f"container is {status}"):
        await manager.start_service(datastore_type="redis", name="cache")
    assert docker.mutations() == before


@pytest.mark.asyncio
async def test_start_created_container(manager, docker):
    await _create(manager)
    docker.find("dokku.redis.cache").status = "created"

    await manager.start_service(datastore_type="redis", name="cache")

    assert docker.find("dokku.redis.cache").status == "running"
