"""Tests for the Docker and Podman CLI runtimes (engine CLI faked)."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from toolcage.runtime.errors import SandboxError, SandboxTimeoutError
from toolcage.runtime.process import ProcessOutput
from toolcage.runtime.sandbox.docker_runtime import DockerRuntime
from toolcage.runtime.sandbox.models import (
    ContainerConfig,
    ContainerMount,
    ContainerResources,
    ContainerSecurityConfig,
    ContainerState,
)
from toolcage.runtime.sandbox.podman_runtime import PodmanRuntime


def _config(**overrides) -> ContainerConfig:
    fields = {
        "container_id": "tc-abc12345",
        "session_id": "sess-1",
        "agent_id": "agent-1",
        "image": "toolcage/agent-runtime:latest",
    }
    fields.update(overrides)
    return ContainerConfig(**fields)


class TestBuildRunCommand:
    def test_hardened_defaults(self) -> None:
        cmd = DockerRuntime().build_run_command(_config())

        assert cmd[:4] == ["docker", "run", "-d", "--rm"]
        assert "--name=toolcage-tc-abc12345" in cmd
        assert "--memory=512m" in cmd
        assert "--cpus=0.5" in cmd
        assert "--network=none" in cmd
        assert "--read-only" in cmd
        assert "--security-opt=no-new-privileges:true" in cmd
        assert "--cap-drop=ALL" in cmd
        assert cmd[-1] == "toolcage/agent-runtime:latest"

    def test_labels(self) -> None:
        cmd = DockerRuntime().build_run_command(_config())

        assert "--label=toolcage.session=sess-1" in cmd
        assert "--label=toolcage.agent=agent-1" in cmd
        assert "--label=toolcage.managed=true" in cmd

    def test_custom_prefixes(self) -> None:
        runtime = DockerRuntime(name_prefix="box", label_prefix="acme")
        cmd = runtime.build_run_command(_config())

        assert "--name=box-tc-abc12345" in cmd
        assert "--label=acme.managed=true" in cmd

    def test_resources_and_network(self) -> None:
        cmd = DockerRuntime().build_run_command(
            _config(resources=ContainerResources(memory="1g", cpus=2), network="bridge")
        )
        assert "--memory=1g" in cmd
        assert "--cpus=2.0" in cmd
        assert "--network=bridge" in cmd

    def test_mount_flags(self) -> None:
        cmd = DockerRuntime().build_run_command(
            _config(
                mounts=[
                    ContainerMount(type="bind", source="/data", target="/workspace/data"),
                    ContainerMount(type="bind", source="/ro", target="/workspace/ro", read_only=True),
                    ContainerMount(type="volume", source="cache", target="/cache"),
                    ContainerMount(type="tmpfs", target="/etc/secrets", read_only=True),
                ]
            )
        )
        assert "-v=/data:/workspace/data" in cmd
        assert "-v=/ro:/workspace/ro:ro" in cmd
        assert "--mount=type=volume,source=cache,target=/cache,readonly=false" in cmd
        assert "--mount=type=tmpfs,target=/etc/secrets,readonly" in cmd

    def test_env_flags(self) -> None:
        cmd = DockerRuntime().build_run_command(_config(env={"SESSION_ID": "sess-1"}))
        assert "-e=SESSION_ID=sess-1" in cmd

    def test_individual_capabilities_and_profiles(self) -> None:
        security = ContainerSecurityConfig(
            read_only_root_filesystem=False,
            no_new_privileges=False,
            drop_capabilities=["NET_RAW", "SYS_ADMIN"],
            seccomp_profile="/etc/seccomp.json",
            apparmor_profile="toolcage-default",
        )
        cmd = DockerRuntime().build_run_command(_config(security=security))

        assert "--read-only" not in cmd
        assert "--security-opt=no-new-privileges:true" not in cmd
        assert "--cap-drop=NET_RAW" in cmd
        assert "--cap-drop=SYS_ADMIN" in cmd
        assert "--security-opt=seccomp=/etc/seccomp.json" in cmd
        assert "--security-opt=apparmor=toolcage-default" in cmd

    def test_command_override_follows_image(self) -> None:
        cmd = DockerRuntime().build_run_command(_config(command=["sleep", "infinity"]))
        assert cmd[-3:] == ["toolcage/agent-runtime:latest", "sleep", "infinity"]

    def test_podman_keeps_user_namespace(self) -> None:
        cmd = PodmanRuntime().build_run_command(_config())
        assert cmd[0] == "podman"
        assert "--userns=keep-id" in cmd

    def test_docker_has_no_userns_flag(self) -> None:
        cmd = DockerRuntime().build_run_command(_config())
        assert not any(flag.startswith("--userns") for flag in cmd)


class TestLifecycle:
    async def test_create_returns_running_status(self, fake_runner) -> None:
        fake_runner.queue(ProcessOutput(stdout="f00dfeed1234567890"))
        runtime = DockerRuntime(fake_runner)

        status = await runtime.create_container(_config())

        assert status.container_id == "tc-abc12345"
        assert status.state == ContainerState.RUNNING
        assert status.name == "toolcage-tc-abc12345"
        assert status.started_at is not None
        assert fake_runner.calls[0][1] == "run"

    async def test_create_failure_raises(self, fake_runner) -> None:
        fake_runner.queue(ProcessOutput(returncode=125, stderr="Unable to find image"))
        runtime = DockerRuntime(fake_runner)

        with pytest.raises(SandboxError, match="Unable to find image"):
            await runtime.create_container(_config())

    async def test_stop_uses_grace_period(self, fake_runner) -> None:
        runtime = DockerRuntime(fake_runner)
        await runtime.stop_container("tc-1", timeout=10)
        assert fake_runner.calls == [["docker", "stop", "-t", "10", "toolcage-tc-1"]]

    async def test_stop_failure_raises(self, fake_runner) -> None:
        fake_runner.queue(ProcessOutput(returncode=1, stderr="Error response from daemon"))
        with pytest.raises(SandboxError):
            await DockerRuntime(fake_runner).stop_container("tc-1")

    async def test_start(self, fake_runner) -> None:
        await PodmanRuntime(fake_runner).start_container("tc-1")
        assert fake_runner.calls == [["podman", "start", "toolcage-tc-1"]]

    async def test_remove_force(self, fake_runner) -> None:
        await DockerRuntime(fake_runner).remove_container("tc-1", force=True)
        assert fake_runner.calls == [["docker", "rm", "-f", "toolcage-tc-1"]]

    @pytest.mark.parametrize(
        "stderr",
        [
            "Error: No such container: toolcage-tc-1",
            "Error: no container with name or ID \"toolcage-tc-1\" found",
            "Error response from daemon: removal of container tc-1 is already in progress",
        ],
    )
    async def test_remove_tolerates_missing_container(self, fake_runner, stderr: str) -> None:
        fake_runner.queue(ProcessOutput(returncode=1, stderr=stderr))
        await DockerRuntime(fake_runner).remove_container("tc-1")

    async def test_remove_other_failures_raise(self, fake_runner) -> None:
        fake_runner.queue(ProcessOutput(returncode=1, stderr="permission denied"))
        with pytest.raises(SandboxError, match="permission denied"):
            await DockerRuntime(fake_runner).remove_container("tc-1")


class TestExec:
    async def test_exec_success(self, fake_runner) -> None:
        fake_runner.queue(ProcessOutput(stdout="hello"))
        runtime = DockerRuntime(fake_runner)

        result = await runtime.exec_in_container("tc-1", ["sh", "-c", "echo hello"], timeout=5)

        assert result.exit_code == 0
        assert result.stdout == "hello"
        assert result.execution_time >= 0
        assert fake_runner.calls == [["docker", "exec", "toolcage-tc-1", "sh", "-c", "echo hello"]]
        assert fake_runner.timeouts == [5]

    async def test_exec_working_dir(self, fake_runner) -> None:
        await DockerRuntime(fake_runner).exec_in_container(
            "tc-1", ["ls"], working_dir="/workspace"
        )
        assert fake_runner.calls[0][:4] == ["docker", "exec", "-w", "/workspace"]

    async def test_exec_non_zero_exit(self, fake_runner) -> None:
        fake_runner.queue(ProcessOutput(returncode=2, stderr="No such file"))
        result = await DockerRuntime(fake_runner).exec_in_container("tc-1", ["cat", "/x"])

        assert result.exit_code == 2
        assert result.stderr == "No such file"

    async def test_exec_timeout_becomes_result(self, fake_runner) -> None:
        fake_runner.queue(SandboxTimeoutError(1.0))
        result = await DockerRuntime(fake_runner).exec_in_container(
            "tc-1", ["sleep", "60"], timeout=1.0
        )

        assert result.exit_code == -1
        assert "timed out" in result.stderr

    async def test_exec_engine_failure_becomes_result(self, fake_runner) -> None:
        fake_runner.queue(SandboxError("Failed to run docker"))
        result = await DockerRuntime(fake_runner).exec_in_container("tc-1", ["true"])

        assert result.exit_code == -1
        assert "Failed to run docker" in result.stderr


class TestInspection:
    async def test_status_running(self, fake_runner) -> None:
        fake_runner.queue(
            ProcessOutput(stdout="running|0|2024-05-01T10:00:00.123456789Z|0001-01-01T00:00:00Z")
        )
        status = await DockerRuntime(fake_runner).get_container_status("tc-1")

        assert status.state == ContainerState.RUNNING
        assert status.exit_code == 0
        assert status.started_at == datetime(2024, 5, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)
        assert status.finished_at is None

    async def test_status_exited(self, fake_runner) -> None:
        fake_runner.queue(
            ProcessOutput(
                stdout="exited|137|2024-05-01T10:00:00Z|2024-05-01T10:00:05.5+02:00"
            )
        )
        status = await DockerRuntime(fake_runner).get_container_status("tc-1")

        assert status.state == ContainerState.STOPPED
        assert status.exit_code == 137
        assert status.finished_at is not None
        assert status.finished_at.utcoffset().total_seconds() == 7200

    async def test_podman_stopped_state(self, fake_runner) -> None:
        fake_runner.queue(ProcessOutput(stdout="stopped|0||"))
        status = await PodmanRuntime(fake_runner).get_container_status("tc-1")
        assert status.state == ContainerState.STOPPED

    async def test_unknown_state_is_pending(self, fake_runner) -> None:
        fake_runner.queue(ProcessOutput(stdout="created|0||"))
        status = await DockerRuntime(fake_runner).get_container_status("tc-1")
        assert status.state == ContainerState.PENDING

    async def test_status_missing_container(self, fake_runner) -> None:
        fake_runner.queue(ProcessOutput(returncode=1, stderr="No such object"))
        status = await DockerRuntime(fake_runner).get_container_status("tc-1")

        assert status.state == ContainerState.ERROR
        assert status.error == "Container not found"

    async def test_logs(self, fake_runner) -> None:
        fake_runner.queue(ProcessOutput(stdout="line 1\nline 2"))
        logs = await DockerRuntime(fake_runner).get_container_logs("tc-1", tail=20)

        assert logs == "line 1\nline 2"
        assert fake_runner.calls == [["docker", "logs", "--tail", "20", "toolcage-tc-1"]]

    async def test_list_filters_by_managed_label(self, fake_runner) -> None:
        fake_runner.queue(
            ProcessOutput(
                stdout=(
                    "a1b2c3|toolcage-tc-1|running|Up 3 seconds\n"
                    "d4e5f6|toolcage-tc-2|exited|Exited (0) 1 minute ago\n"
                )
            )
        )
        runtime = DockerRuntime(fake_runner)

        containers = await runtime.list_containers({"toolcage.session": "sess-1"})

        cmd = fake_runner.calls[0]
        assert "label=toolcage.session=sess-1" in cmd
        assert cmd[-2:] == ["--filter", "label=toolcage.managed=true"]
        assert [c.container_id for c in containers] == ["tc-1", "tc-2"]
        assert [c.state for c in containers] == [ContainerState.RUNNING, ContainerState.STOPPED]

    async def test_list_foreign_name_falls_back_to_engine_id(self, fake_runner) -> None:
        fake_runner.queue(ProcessOutput(stdout="a1b2c3|someone-else|running|Up"))
        runtime = DockerRuntime(fake_runner)

        containers = await runtime.list_containers()

        assert containers[0].container_id == "a1b2c3"
        assert runtime.container_name("a1b2c3") == "a1b2c3"
        assert runtime.container_name("tc-1") == "toolcage-tc-1"

    async def test_docker_list_failure_raises(self, fake_runner) -> None:
        fake_runner.queue(ProcessOutput(returncode=1, stderr="daemon not running"))
        with pytest.raises(SandboxError):
            await DockerRuntime(fake_runner).list_containers()

    async def test_podman_list_failure_is_empty(self, fake_runner) -> None:
        fake_runner.queue(ProcessOutput(returncode=1, stderr="cannot connect"))
        assert await PodmanRuntime(fake_runner).list_containers() == []
