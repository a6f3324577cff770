# Copyright (C) 2022 Anaconda, Inc
# SPDX-License-Identifier: BSD-3-Clause

from pathlib import Path

import pytest
import requests

from conda_manager.config import CondaConfig, default_conda_exe
from conda_manager.environment import ROOT, resolve_environment
from conda_manager.exceptions import BootstrapError, UnsupportedPlatformError
from conda_manager.installer import (
    download_installer,
    ensure_installed,
    installer_url,
    is_installed,
    run_installer,
)
from conda_manager.utils import is_windows

MINICONDA = "https://repo.anaconda.com/miniconda/"
MINIFORGE = "https://github.com/conda-forge/miniforge/releases/latest/download/"


@pytest.fixture
def fresh_config(tmp_path) -> CondaConfig:
    """A configuration where conda has not been installed yet."""
    root = tmp_path / "fresh-root"
    return CondaConfig(root_prefix=root, conda_exe=default_conda_exe(root))


@pytest.fixture
def mocked_download(mocker):
    def download(url, destination):
        Path(destination).write_text("#!/bin/sh\n")
        return Path(destination)

    return mocker.patch(
        "conda_manager.installer.download_installer", side_effect=download
    )


@pytest.mark.parametrize(
    "system, machine, url",
    [
        ("Linux", "x86_64", MINICONDA + "Miniconda3-latest-Linux-x86_64.sh"),
        ("Linux", "aarch64", MINICONDA + "Miniconda3-latest-Linux-aarch64.sh"),
        ("Linux", "ppc64le", MINICONDA + "Miniconda3-latest-Linux-ppc64le.sh"),
        ("Linux", "i686", MINICONDA + "Miniconda3-latest-Linux-x86.sh"),
        ("Darwin", "x86_64", MINICONDA + "Miniconda3-latest-MacOSX-x86_64.sh"),
        ("Darwin", "arm64", MINICONDA + "Miniconda3-latest-MacOSX-arm64.sh"),
        ("Windows", "AMD64", MINICONDA + "Miniconda3-latest-Windows-x86_64.exe"),
        ("Windows", "x86", MINICONDA + "Miniconda3-latest-Windows-x86.exe"),
    ],
)
def test_miniconda_url(conda_config, system, machine, url):
    assert installer_url(conda_config, system=system, machine=machine) == url


def test_miniconda2_url(conda_config):
    config = conda_config.copy(update={"miniconda_version": "2"})
    assert (
        installer_url(config, system="Linux", machine="x86_64")
        == MINICONDA + "Miniconda2-latest-Linux-x86_64.sh"
    )


@pytest.mark.parametrize(
    "system, machine, url",
    [
        ("Linux", "x86_64", MINIFORGE + "Miniforge3-Linux-x86_64.sh"),
        ("Linux", "aarch64", MINIFORGE + "Miniforge3-Linux-aarch64.sh"),
        ("Darwin", "arm64", MINIFORGE + "Miniforge3-MacOSX-arm64.sh"),
        ("Windows", "AMD64", MINIFORGE + "Miniforge3-Windows-x86_64.exe"),
    ],
)
def test_miniforge_url(conda_config, system, machine, url):
    config = conda_config.copy(update={"use_miniforge": True})
    assert installer_url(config, system=system, machine=machine) == url


@pytest.mark.parametrize(
    "system, machine, use_miniforge",
    [
        ("FreeBSD", "x86_64", False),
        ("Darwin", "i386", False),
        ("Windows", "ARM64", False),
        ("Linux", "i686", True),
        ("Linux", "s390x", False),
    ],
)
def test_unsupported_platform(conda_config, system, machine, use_miniforge):
    config = conda_config.copy(update={"use_miniforge": use_miniforge})
    with pytest.raises(UnsupportedPlatformError):
        installer_url(config, system=system, machine=machine)


def test_miniforge_requires_version_3(conda_config):
    config = conda_config.copy(
        update={"use_miniforge": True, "miniconda_version": "2"}
    )
    with pytest.raises(UnsupportedPlatformError, match="Python 3"):
        installer_url(config, system="Linux", machine="x86_64")


def test_is_installed(conda_config, fresh_config):
    assert is_installed(conda_config)
    assert not is_installed(fresh_config)


def test_download_installer(mocker, tmp_path):
    resp = mocker.MagicMock()
    resp.__enter__.return_value = resp
    resp.iter_content.return_value = [b"#!/bin/sh\n", b"echo installing\n"]
    get = mocker.patch("conda_manager.installer.requests.get", return_value=resp)

    destination = download_installer("https://example.com/installer.sh", tmp_path / "i.sh")

    assert destination.read_bytes() == b"#!/bin/sh\necho installing\n"
    assert get.call_args == mocker.call("https://example.com/installer.sh", stream=True)
    resp.raise_for_status.assert_called_once()


def test_download_installer_http_error(mocker, tmp_path):
    resp = mocker.MagicMock()
    resp.__enter__.return_value = resp
    resp.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
    mocker.patch("conda_manager.installer.requests.get", return_value=resp)

    with pytest.raises(BootstrapError, match="404"):
        download_installer("https://example.com/installer.sh", tmp_path / "i.sh")


def test_download_installer_connection_error(mocker, tmp_path):
    mocker.patch(
        "conda_manager.installer.requests.get",
        side_effect=requests.ConnectionError("no network"),
    )

    with pytest.raises(BootstrapError, match="Failed to download"):
        download_installer("https://example.com/installer.sh", tmp_path / "i.sh")


@pytest.mark.skipif(is_windows(), reason="POSIX installer")
def test_run_installer_posix(fake_conda, tmp_path):
    installer = tmp_path / "installer.sh"
    installer.write_text("#!/bin/sh\n")

    run_installer(installer, tmp_path / "root")

    assert fake_conda.calls[0].cmd == [
        str(installer),
        "-b",
        "-f",
        "-p",
        str(tmp_path / "root"),
    ]
    assert installer.stat().st_mode & 0o777 == 0o755


def test_run_installer_windows(fake_conda, tmp_path):
    installer = tmp_path / "installer.exe"
    installer.touch()

    run_installer(installer, "C:\\Users\\me\\conda root", windows=True)

    cmd = fake_conda.calls[0].cmd
    assert isinstance(cmd, str)
    assert "/S /NoShortcuts=1 /NoRegistry=1 /AddToPath=0 /RegisterPython=0" in cmd
    assert cmd.endswith(" /D=C:\\Users\\me\\conda root")


def test_run_installer_windows_double_space(fake_conda, tmp_path):
    with pytest.raises(BootstrapError, match="two consecutive spaces"):
        run_installer(tmp_path / "installer.exe", "C:\\conda  root", windows=True)

    assert fake_conda.calls == []


@pytest.mark.skipif(is_windows(), reason="POSIX installer")
def test_run_installer_failure(fake_conda, tmp_path):
    installer = tmp_path / "installer.sh"
    installer.write_text("#!/bin/sh\n")
    fake_conda.respond("-b", returncode=1)

    with pytest.raises(BootstrapError, match="exit status 1"):
        run_installer(installer, tmp_path / "root")


def test_ensure_installed_is_a_no_op(fake_conda, conda_config, mocked_download):
    ensure_installed(ROOT, config=conda_config)

    assert fake_conda.calls == []
    assert mocked_download.call_count == 0


def test_ensure_installed_creates_environment(fake_conda, conda_config):
    env = resolve_environment("myenv", conda_config)

    ensure_installed(env)

    assert fake_conda.commands == [["create", "-y", "-p", str(env.prefix)]]
    assert fake_conda.calls[0].env["CONDA_PREFIX"] == str(conda_config.root_prefix)
    assert env.prefix.is_dir()

    ensure_installed(env)
    assert len(fake_conda.calls) == 1


def test_ensure_installed_quiet_on_ci(fake_conda, conda_config, monkeypatch):
    monkeypatch.setenv("CI", "true")
    env = resolve_environment("myenv", conda_config)

    ensure_installed(env)

    assert fake_conda.commands == [["create", "-q", "-y", "-p", str(env.prefix)]]


@pytest.mark.skipif(is_windows(), reason="POSIX installer")
def test_ensure_installed_bootstraps_conda(fake_conda, fresh_config, mocked_download):
    root = fresh_config.root_prefix

    ensure_installed(ROOT, config=fresh_config)

    url = mocked_download.call_args.args[0]
    assert url == installer_url(fresh_config)

    installer_call, *conda_calls = fake_conda.calls
    assert Path(installer_call.cmd[0]).name == "installer.sh"
    assert installer_call.cmd[1:] == ["-b", "-f", "-p", str(root)]

    condarc = str(root / "condarc-conda-manager.yml")
    assert [c.args for c in conda_calls] == [
        ["config", "--add", "channels", "defaults", "--file", condarc, "--force"],
        ["update", "-y", "conda"],
    ]
    assert all(c.cmd[0] == str(fresh_config.conda_exe) for c in conda_calls)


@pytest.mark.skipif(is_windows(), reason="POSIX installer")
def test_ensure_installed_miniforge_keeps_its_channels(
    fake_conda, fresh_config, mocked_download
):
    config = fresh_config.copy(update={"use_miniforge": True})

    ensure_installed(ROOT, config=config)

    assert "Miniforge3" in mocked_download.call_args.args[0]
    assert fake_conda.commands[1:] == [["update", "-y", "conda"]]


@pytest.mark.skipif(is_windows(), reason="POSIX installer")
def test_ensure_installed_then_creates_environment(
    fake_conda, fresh_config, mocked_download
):
    env = resolve_environment("myenv", fresh_config)

    ensure_installed(env)

    assert fake_conda.commands[-1] == ["create", "-y", "-p", str(env.prefix)]


@pytest.mark.skipif(is_windows(), reason="POSIX installer")
def test_ensure_installed_force(fake_conda, conda_config, mocked_download):
    ensure_installed(ROOT, force=True, config=conda_config)

    assert mocked_download.call_count == 1
    assert fake_conda.commands[-1] == ["update", "-y", "conda"]


def test_conda_exe_outside_root(fake_conda, tmp_path, mocked_download):
    config = CondaConfig(
        root_prefix=tmp_path / "root", conda_exe=tmp_path / "elsewhere" / "conda"
    )

    with pytest.raises(BootstrapError, match="not located within"):
        ensure_installed(ROOT, config=config)

    assert mocked_download.call_count == 0
    assert fake_conda.calls == []


@pytest.mark.skipif(is_windows(), reason="POSIX installer")
def test_installer_failure_is_fatal(fake_conda, fresh_config, mocked_download):
    fake_conda.respond("-b", returncode=2)

    with pytest.raises(BootstrapError):
        ensure_installed(ROOT, config=fresh_config)

    assert len(fake_conda.calls) == 1
