"""Engine runtimes satisfy the ContainerRuntime protocol."""

from toolcage.runtime.sandbox import DockerRuntime, PodmanRuntime
from toolcage.runtime.sandbox.models import RuntimeType
from toolcage.runtime.sandbox.runtime import ContainerRuntime


class TestContainerRuntimeProtocol:
    def test_docker_is_container_runtime(self) -> None:
        runtime = DockerRuntime()
        assert isinstance(runtime, ContainerRuntime)
        assert runtime.type == RuntimeType.DOCKER

    def test_podman_is_container_runtime(self) -> None:
        runtime = PodmanRuntime()
        assert isinstance(runtime, ContainerRuntime)
        assert runtime.type == RuntimeType.PODMAN

    def test_plain_object_is_not(self) -> None:
        assert not isinstance(object(), ContainerRuntime)
