"""
Pytest configuration for korrect tests.
"""

import json
from unittest.mock import MagicMock

import pytest

from korrect.config import ShimConfig


@pytest.fixture
def shim_config(tmp_path):
    """ShimConfig rooted in a temporary directory, fixed to linux/amd64."""
    return ShimConfig(
        base_url="https://dl.example.test",
        bin_dir=tmp_path / "bin",
        cache_dir=tmp_path / "cache",
        default_kubeconfig=str(tmp_path / "kubeconfig"),
        os_name="linux",
        arch="amd64",
        show_progress=False,
    )


@pytest.fixture
def kubeconfig(shim_config):
    """A connection config file at the default location."""
    path = shim_config.default_kubeconfig
    with open(path, "w") as f:
        f.write("apiVersion: v1\nkind: Config\ncurrent-context: test\n")
    return path


def _make_response(text="", chunks=(), headers=None):
    """Successful requests.Response stand-in."""
    response = MagicMock()
    response.status_code = 200
    response.text = text
    response.headers = headers if headers is not None else {}
    response.iter_content = MagicMock(return_value=list(chunks))
    response.raise_for_status = MagicMock()
    return response


def _make_version_output(git_version=None, returncode=0):
    """subprocess.run result for `kubectl version -o json`."""
    document = {"clientVersion": {"gitVersion": "v1.31.3"}}
    if git_version is not None:
        document["serverVersion"] = {"gitVersion": git_version}
    result = MagicMock()
    result.returncode = returncode
    result.stdout = json.dumps(document).encode()
    result.stderr = b""
    return result


@pytest.fixture
def make_response():
    """Factory for successful HTTP responses."""
    return _make_response


@pytest.fixture
def make_version_output():
    """Factory for `kubectl version -o json` results."""
    return _make_version_output
