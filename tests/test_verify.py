from __future__ import annotations

from unittest.mock import patch

from fedora_installer.lib.command import CmdResult
from fedora_installer.model import GraphicsVendor, UserChoices, VirtualizationPlatform, Workflow
from fedora_installer.verify import Capability, expected_capabilities, verify


def _names(caps):
    return {c.name for c in caps}


def test_capabilities_follow_selected_workflows():
    codecs = _names(expected_capabilities(UserChoices(workflows=(Workflow.CODECS,))))
    devstack = _names(expected_capabilities(UserChoices(workflows=(Workflow.DEVSTACK,))))

    assert "GStreamer" in codecs and "PowerShell" not in codecs
    assert "PowerShell" in devstack and "GStreamer" not in devstack


def test_virtualization_capability_only_for_chosen_platform():
    without = expected_capabilities(UserChoices())
    with_vmware = expected_capabilities(UserChoices(virtualization=VirtualizationPlatform.VMWARE))

    assert len(with_vmware) == len(without) + 1
    service = [c for c in with_vmware if c.service == "vmtoolsd"]
    assert len(service) == 1


def test_vaapi_capability_only_when_a_vendor_is_chosen():
    skipped = _names(expected_capabilities(UserChoices(graphics=GraphicsVendor.SKIP)))
    amd = _names(expected_capabilities(UserChoices(graphics=GraphicsVendor.AMD)))

    assert "Hardware video acceleration (VA-API)" not in skipped
    assert "Hardware video acceleration (VA-API)" in amd


def test_missing_command_is_reported_not_raised():
    cap = Capability(name="Azure CLI", command=("az", "--version"), critical=True, follow_up="sudo dnf install -y azure-cli")

    with patch("fedora_installer.verify.shutil.which", return_value=None):
        status = verify([cap])["Azure CLI"]

    assert not status.present
    assert status.critical


def test_version_is_first_output_line():
    cap = Capability(name="PowerShell", command=("pwsh", "--version"))
    out = CmdResult(argv=["pwsh"], returncode=0, stdout="\nPowerShell 7.5.0\nextra\n", stderr="")

    with patch("fedora_installer.verify.shutil.which", return_value="/usr/bin/pwsh"), \
         patch("fedora_installer.verify.run_cmd", return_value=out):
        status = verify([cap])["PowerShell"]

    assert status.present
    assert status.version == "PowerShell 7.5.0"


def test_failing_command_is_not_present():
    cap = Capability(name="Node.js", command=("node", "--version"))
    out = CmdResult(argv=["node"], returncode=1, stdout="", stderr="broken")

    with patch("fedora_installer.verify.shutil.which", return_value="/usr/bin/node"), \
         patch("fedora_installer.verify.run_cmd", return_value=out):
        assert not verify([cap])["Node.js"].present


def test_service_checked_with_is_active():
    cap = Capability(name="Podman socket", service="podman.socket", user=True)

    with patch("fedora_installer.verify.services.is_active", return_value=True) as active:
        status = verify([cap])["Podman socket"]

    active.assert_called_once_with("podman.socket", user=True)
    assert status.present
    assert status.version == "active"


def test_user_local_tools_found_outside_path(tmp_path, monkeypatch):
    bin_dir = tmp_path / ".npm-global" / "bin"
    bin_dir.mkdir(parents=True)
    func = bin_dir / "func"
    func.write_text("#!/bin/sh\necho 4.0.7030\n")
    func.chmod(0o755)
    monkeypatch.setenv("PATH", "/usr/bin:/bin")
    caps = expected_capabilities(UserChoices(workflows=(Workflow.DEVSTACK,)), home=tmp_path)
    cap = next(c for c in caps if c.name == "Azure Functions Core Tools")
    out = CmdResult(argv=[str(func)], returncode=0, stdout="4.0.7030\n", stderr="")

    with patch("fedora_installer.verify.run_cmd", return_value=out) as run:
        status = verify([cap])["Azure Functions Core Tools"]

    assert cap.extra_paths == (str(bin_dir),)
    assert status.present
    assert status.version == "4.0.7030"
    assert run.call_args[0][0] == [str(func), "--version"]


def test_dotnet_tools_dir_searched_for_power_platform(tmp_path):
    caps = expected_capabilities(UserChoices(workflows=(Workflow.DEVSTACK,)), home=tmp_path)
    pac = next(c for c in caps if c.name == "Power Platform CLI")

    assert pac.extra_paths == (str(tmp_path / ".dotnet" / "tools"),)
