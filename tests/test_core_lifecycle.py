"""Tests for korrect._core.lifecycle module."""

import os
import stat
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

from korrect._core.lifecycle import (
    download_file,
    ensure_binary,
    get_binary_path,
    get_platform_info,
    list_installed,
)
from korrect.errors import FilesystemError, NetworkUnavailableError, UpstreamError
from korrect.types import Version


class TestGetPlatformInfo:
    """Tests for get_platform_info function."""
    
    def test_returns_tuple(self):
        """Should return (os, arch) tuple."""
        result = get_platform_info()
        assert isinstance(result, tuple)
        assert len(result) == 2
    
    def test_os_is_valid(self):
        """OS should be one of the vendor's values."""
        os_name, _ = get_platform_info()
        assert os_name in ("linux", "darwin", "windows")
    
    @pytest.mark.parametrize(
        "system,machine,expected",
        [
            ("Linux", "x86_64", ("linux", "amd64")),
            ("Linux", "aarch64", ("linux", "arm64")),
            ("Linux", "armv7l", ("linux", "arm")),
            ("Linux", "i686", ("linux", "386")),
            ("Darwin", "arm64", ("darwin", "arm64")),
            ("Darwin", "x86_64", ("darwin", "amd64")),
            ("Windows", "AMD64", ("windows", "amd64")),
        ],
    )
    def test_known_platforms(self, system, machine, expected):
        with patch("platform.system", return_value=system), \
             patch("platform.machine", return_value=machine):
            assert get_platform_info() == expected
    
    @patch("platform.system")
    @patch("platform.machine")
    def test_unknown_arch_passes_through(self, mock_machine, mock_system):
        """Unknown architectures keep their native name."""
        mock_system.return_value = "Linux"
        mock_machine.return_value = "riscv64"
        
        assert get_platform_info() == ("linux", "riscv64")
    
    @patch("platform.system")
    @patch("platform.machine")
    def test_unknown_os_maps_to_linux(self, mock_machine, mock_system):
        mock_system.return_value = "FreeBSD"
        mock_machine.return_value = "amd64"
        
        os_name, _ = get_platform_info()
        
        assert os_name == "linux"


class TestGetBinaryPath:
    """Tests for get_binary_path function."""
    
    def test_embeds_version(self, shim_config):
        result = get_binary_path(shim_config, "v1.31.3")
        assert result == shim_config.bin_dir / "kubectl-v1.31.3"
    
    def test_windows_suffix(self, shim_config):
        shim_config.os_name = "windows"
        result = get_binary_path(shim_config, "v1.31.3")
        assert result.name == "kubectl-v1.31.3.exe"


class TestDownloadFile:
    """Tests for download_file function."""
    
    @patch("requests.get")
    def test_writes_all_chunks(self, mock_get, tmp_path, make_response):
        mock_get.return_value = make_response(chunks=[b"A bunch ", b"of bytes"])
        target = tmp_path / "out" / "kubectl-v1.31.3"
        
        result = download_file("https://dl.example.test/kubectl", target, timeout=5, show_progress=False)
        
        assert result == target
        assert target.read_bytes() == b"A bunch of bytes"
        mock_get.assert_called_once_with("https://dl.example.test/kubectl", stream=True, timeout=5)
    
    @patch("requests.get")
    def test_sets_executable(self, mock_get, tmp_path, make_response):
        """Downloaded binary should be 0755."""
        if sys.platform == "win32":
            pytest.skip("Executable test not applicable on Windows")
        mock_get.return_value = make_response(chunks=[b"#!/bin/sh\necho hello\n"])
        target = tmp_path / "kubectl-v1.31.3"
        
        download_file("https://dl.example.test/kubectl", target, timeout=5, show_progress=False)
        
        assert os.access(target, os.X_OK)
        assert stat.S_IMODE(target.stat().st_mode) == 0o755
    
    @patch("requests.get")
    def test_with_progress_and_content_length(self, mock_get, tmp_path, make_response):
        mock_get.return_value = make_response(
            chunks=[b"12345", b"678"],
            headers={"content-length": "8"},
        )
        target = tmp_path / "kubectl-v1.31.3"
        
        download_file("https://dl.example.test/kubectl", target, timeout=5, show_progress=True)
        
        assert target.read_bytes() == b"12345678"
    
    @patch("requests.get")
    def test_without_content_length(self, mock_get, tmp_path, make_response):
        """Missing content length degrades to an indeterminate total."""
        mock_get.return_value = make_response(chunks=[b"data"], headers={})
        target = tmp_path / "kubectl-v1.31.3"
        
        download_file("https://dl.example.test/kubectl", target, timeout=5, show_progress=True)
        
        assert target.read_bytes() == b"data"
    
    @patch("requests.get")
    def test_http_error(self, mock_get, tmp_path):
        """404 response should raise UpstreamError and leave nothing behind."""
        mock_response = MagicMock()
        mock_response.status_code = 404
        mock_response.raise_for_status.side_effect = requests.exceptions.HTTPError("404")
        mock_get.return_value = mock_response
        target = tmp_path / "kubectl-v9.9.9"
        
        with pytest.raises(UpstreamError) as exc_info:
            download_file("https://dl.example.test/kubectl", target, timeout=5, show_progress=False)
        
        assert exc_info.value.status_code == 404
        assert not target.exists()
    
    @patch("requests.get")
    def test_connection_error(self, mock_get, tmp_path):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")
        target = tmp_path / "kubectl-v1.31.3"
        
        with pytest.raises(NetworkUnavailableError):
            download_file("https://dl.example.test/kubectl", target, timeout=5, show_progress=False)
    
    @patch("requests.get")
    def test_interrupted_download_leaves_no_file(self, mock_get, tmp_path, make_response):
        """A dropped transfer never leaves a partial file at the final path."""
        def chunks():
            yield b"partial"
            raise requests.exceptions.ChunkedEncodingError("connection dropped")
        
        response = make_response()
        response.iter_content = MagicMock(return_value=chunks())
        mock_get.return_value = response
        target = tmp_path / "kubectl-v1.31.3"
        
        with pytest.raises(NetworkUnavailableError):
            download_file("https://dl.example.test/kubectl", target, timeout=5, show_progress=False)
        
        assert not target.exists()
        assert list(tmp_path.iterdir()) == []
        response.close.assert_called_once()
    
    @patch("requests.get")
    def test_unwritable_directory(self, mock_get, tmp_path, make_response):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file")
        
        with pytest.raises(FilesystemError):
            download_file(
                "https://dl.example.test/kubectl",
                blocker / "kubectl-v1.31.3",
                timeout=5,
                show_progress=False,
            )
        
        mock_get.assert_not_called()


class TestEnsureBinary:
    """Tests for ensure_binary function."""
    
    @patch("requests.get")
    def test_returns_existing_binary(self, mock_get, shim_config):
        """Should return existing binary without download."""
        binary_path = shim_config.bin_dir / "kubectl-v1.31.3"
        binary_path.parent.mkdir(parents=True)
        binary_path.write_bytes(b"existing binary")
        
        result = ensure_binary(shim_config, "v1.31.3")
        
        assert result == binary_path
        mock_get.assert_not_called()
    
    @patch("requests.get")
    def test_downloads_from_release_layout(self, mock_get, shim_config, make_response):
        mock_get.return_value = make_response(chunks=[b"binary"])
        
        result = ensure_binary(shim_config, "v1.30.5")
        
        assert result == shim_config.bin_dir / "kubectl-v1.30.5"
        assert result.exists()
        url = mock_get.call_args[0][0]
        assert url == "https://dl.example.test/release/v1.30.5/bin/linux/amd64/kubectl"
    
    @patch("requests.get")
    def test_download_once(self, mock_get, shim_config, make_response):
        """A second call for the same version is a no-op."""
        mock_get.return_value = make_response(chunks=[b"binary"])
        
        first = ensure_binary(shim_config, "v1.30.5")
        second = ensure_binary(shim_config, "v1.30.5")
        
        assert first == second
        assert mock_get.call_count == 1
    
    @patch("requests.get")
    def test_retry_after_failure(self, mock_get, shim_config, make_response):
        """A failed download is simply redone on the next call."""
        mock_get.side_effect = [
            requests.exceptions.Timeout("timed out"),
            make_response(chunks=[b"binary"]),
        ]
        
        with pytest.raises(NetworkUnavailableError):
            ensure_binary(shim_config, "v1.30.5")
        result = ensure_binary(shim_config, "v1.30.5")
        
        assert result.read_bytes() == b"binary"
    
    @patch("requests.get")
    def test_uses_configured_timeout(self, mock_get, shim_config, make_response):
        shim_config.http_timeout = 7.0
        mock_get.return_value = make_response(chunks=[b"binary"])
        
        ensure_binary(shim_config, "v1.30.5")
        
        assert mock_get.call_args[1]["timeout"] == 7.0


class TestListInstalled:
    """Tests for list_installed function."""
    
    def test_missing_directory(self, shim_config):
        assert list_installed(shim_config) == []
    
    def test_sorted_by_version(self, shim_config):
        shim_config.bin_dir.mkdir(parents=True)
        for version in ("v1.31.3", "v1.9.0", "v1.30.5"):
            (shim_config.bin_dir / f"kubectl-{version}").write_bytes(b"bin")
        
        result = list_installed(shim_config)
        
        assert [b.version for b in result] == [
            Version(1, 9, 0),
            Version(1, 30, 5),
            Version(1, 31, 3),
        ]
        assert result[0].path == shim_config.bin_dir / "kubectl-v1.9.0"
    
    def test_skips_unversioned_files(self, shim_config):
        shim_config.bin_dir.mkdir(parents=True)
        (shim_config.bin_dir / "kubectl-shim").write_bytes(b"shim")
        (shim_config.bin_dir / "kubectl").write_bytes(b"shim")
        (shim_config.bin_dir / ".kubectl-v1.30.5.abc.part").write_bytes(b"partial")
        (shim_config.bin_dir / "kubectl-v1.30.5").write_bytes(b"bin")
        
        result = list_installed(shim_config)
        
        assert [b.path.name for b in result] == ["kubectl-v1.30.5"]
