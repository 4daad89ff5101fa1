from __future__ import annotations

import pytest
from conftest import make_facts

from fedora_installer.actions import Chain, ReleaseRpm
from fedora_installer.model import (
    GraphicsVendor,
    Phase,
    StepCategory,
    UserChoices,
    VirtualizationPlatform,
    Workflow,
)
from fedora_installer.plan_builder import build
from fedora_installer.steps.common import package_group_step


def _ids(plan):
    return plan.step_ids()


def test_build_is_deterministic(facts, cfg):
    choices = UserChoices(graphics=GraphicsVendor.AMD, virtualization=VirtualizationPlatform.KVM)

    assert build(facts, choices, config=cfg) == build(facts, choices, config=cfg)


def test_steps_are_in_phase_order_starting_with_system_update(facts, cfg):
    plan = build(facts, UserChoices(graphics=GraphicsVendor.INTEL), config=cfg)

    phases = [s.phase.value for s in plan.steps]
    assert phases == sorted(phases)
    assert plan.steps[0].step_id == "10_system_update"
    assert plan.steps[0].critical


def test_step_ids_are_unique(facts, cfg):
    plan = build(facts, UserChoices(virtualization=VirtualizationPlatform.VMWARE), config=cfg)

    assert len(set(_ids(plan))) == len(plan.steps)


def test_graphics_skip_adds_no_hwaccel_step(facts, cfg):
    plan = build(facts, UserChoices(graphics=GraphicsVendor.SKIP), config=cfg)

    assert not [i for i in _ids(plan) if "hwaccel" in i]


@pytest.mark.parametrize("vendor", [GraphicsVendor.INTEL, GraphicsVendor.AMD, GraphicsVendor.NVIDIA])
def test_only_the_chosen_vendor_is_planned(facts, cfg, vendor):
    plan = build(facts, UserChoices(graphics=vendor), config=cfg)

    hwaccel = [i for i in _ids(plan) if "hwaccel" in i]
    assert hwaccel == [f"40_hwaccel_{vendor.value}"]


def test_hwaccel_requires_codecs_workflow(facts, cfg):
    choices = UserChoices(graphics=GraphicsVendor.INTEL, workflows=(Workflow.DEVSTACK,))

    assert not [i for i in _ids(build(facts, choices, config=cfg)) if "hwaccel" in i]


def test_no_virtualization_means_no_guest_steps(facts, cfg):
    plan = build(facts, UserChoices(virtualization=None), config=cfg)

    assert not [i for i in _ids(plan) if "guest" in i]


def test_vmware_adds_package_and_service_steps(facts, cfg):
    plan = build(facts, UserChoices(virtualization=VirtualizationPlatform.VMWARE), config=cfg)

    ids = _ids(plan)
    assert "40_guest_vmware" in ids
    assert "70_guest_vmware_service" in ids
    service = next(s for s in plan.steps if s.step_id == "70_guest_vmware_service")
    assert service.category is StepCategory.SERVICE
    assert service.action.unit == "vmtoolsd"


def test_codecs_only_plan(facts, cfg):
    plan = build(facts, UserChoices(workflows=(Workflow.CODECS,)), config=cfg)

    ids = _ids(plan)
    assert "20_rpmfusion" in ids
    assert "30_multimedia_groups" in ids
    assert "20_vscode" not in ids
    assert "60_git_identity" not in ids
    assert "70_podman_socket" not in ids


def test_devstack_only_plan(facts, cfg):
    plan = build(facts, UserChoices(workflows=(Workflow.DEVSTACK,)), config=cfg)

    ids = _ids(plan)
    assert "20_rpmfusion" not in ids
    assert {"20_microsoft_prod", "20_vscode", "30_powershell", "50_azure_functions"} <= set(ids)
    assert {"60_dev_aliases", "60_dotnet_tools_path", "60_dev_dirs", "60_git_identity"} <= set(ids)
    assert "70_podman_socket" in ids


def test_repository_urls_use_detected_version(cfg):
    plan = build(make_facts(version_id=43), UserChoices(), config=cfg)

    rpmfusion = next(s for s in plan.steps if s.step_id == "20_rpmfusion")
    assert all("43" in p for p in rpmfusion.action.packages)
    prod = next(s for s in plan.steps if s.step_id == "20_microsoft_prod")
    assert "/fedora/43/" in prod.action.url


def test_powershell_has_release_fallback(facts, cfg):
    plan = build(facts, UserChoices(), config=cfg)

    step = next(s for s in plan.steps if s.step_id == "30_powershell")
    assert isinstance(step.fallback, ReleaseRpm)
    assert step.fallback_label == "GitHub release RPM"
    assert step.critical


def test_azure_functions_falls_back_to_user_prefix(facts, cfg):
    plan = build(facts, UserChoices(), config=cfg)

    step = next(s for s in plan.steps if s.step_id == "50_azure_functions")
    assert isinstance(step.fallback, Chain)
    assert step.edits == (cfg.rc_file,)


def test_edit_steps_declare_edited_files(facts, cfg):
    plan = build(facts, UserChoices(), config=cfg)

    for step in plan.steps:
        if step.category is StepCategory.FILE_EDIT and step.step_id in {"60_dev_aliases", "60_dotnet_tools_path"}:
            assert step.edits == (cfg.rc_file,)
        if step.category is StepCategory.REPOSITORY and step.step_id != "20_rpmfusion":
            assert step.edits


def test_package_group_rejects_glob_checks():
    entry = {"id": "broken", "packages": ["gstreamer1-plugins-*"]}

    with pytest.raises(ValueError):
        package_group_step(entry, Phase.CORE_PACKAGES)
