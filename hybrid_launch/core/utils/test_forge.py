import json
from unittest.mock import MagicMock, patch

import pytest

from hybrid_launch.core.errors import BuildError
from hybrid_launch.core.utils.forge import (
    MANAGER_ARTIFACT,
    TOKEN_ARTIFACT,
    LaunchArtifacts,
    build_launch_artifacts,
    extract_bytecode,
    run_forge_build,
)


def _write_artifacts(root):
    for rel, bytecode in ((TOKEN_ARTIFACT, {"object": "6080"}), (MANAGER_ARTIFACT, "0x6081")):
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({"abi": [{"type": "constructor"}], "bytecode": bytecode}))


@patch("hybrid_launch.core.utils.forge.subprocess.run")
def test_forge_build_success(mock_run, tmp_path):
    mock_run.return_value = MagicMock(returncode=0, stdout="Compiler run successful", stderr="")
    assert run_forge_build(tmp_path) == "Compiler run successful"
    args, kwargs = mock_run.call_args
    assert args[0] == ["forge", "build"]
    assert kwargs["cwd"] == str(tmp_path)


@patch("hybrid_launch.core.utils.forge.subprocess.run")
def test_forge_build_failure_surfaces_output(mock_run, tmp_path):
    mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="Error: boom")
    with pytest.raises(BuildError, match="Is Foundry installed") as excinfo:
        run_forge_build(tmp_path)
    assert excinfo.value.output == "Error: boom"
    assert "Error: boom" in str(excinfo.value)


@patch("hybrid_launch.core.utils.forge.subprocess.run", side_effect=FileNotFoundError("forge"))
def test_forge_missing_binary(mock_run, tmp_path):
    with pytest.raises(BuildError, match="forge build failed"):
        run_forge_build(tmp_path)


def test_extract_bytecode_variants():
    assert extract_bytecode({"bytecode": {"object": "6080"}}) == "0x6080"
    assert extract_bytecode({"bytecode": "0x6080"}) == "0x6080"
    with pytest.raises(BuildError, match="Unable to find bytecode"):
        extract_bytecode({"abi": []})
    with pytest.raises(BuildError, match="empty"):
        extract_bytecode({"bytecode": {"object": "0x"}})


def test_launch_artifacts_from_dir(tmp_path):
    _write_artifacts(tmp_path)
    artifacts = LaunchArtifacts.from_dir(tmp_path)
    assert artifacts.token_bytecode == "0x6080"
    assert artifacts.manager_bytecode == "0x6081"
    assert artifacts.token_abi == [{"type": "constructor"}]


def test_missing_artifact_is_build_error(tmp_path):
    with pytest.raises(BuildError, match="Artifact not found"):
        LaunchArtifacts.from_dir(tmp_path)


@patch("hybrid_launch.core.utils.forge.run_forge_build")
def test_build_launch_artifacts_builds_then_loads(mock_build, tmp_path):
    _write_artifacts(tmp_path)
    artifacts = build_launch_artifacts(tmp_path)
    mock_build.assert_called_once_with(tmp_path)
    assert artifacts.manager_abi == [{"type": "constructor"}]
